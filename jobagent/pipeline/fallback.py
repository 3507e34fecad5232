"""Synthetic job listings used when the model's listings cannot be parsed."""

from datetime import date, timedelta

from jobagent.core.schemas import JobListing

FALLBACK_COUNT = 8

_COMPANIES = ("TechCorp", "InnovateLabs", "DataSystems", "CloudWorks", "DevStudio", "AI Solutions")
_OTHER_LOCATIONS = ("San Francisco, CA", "New York, NY", "Austin, TX", "Seattle, WA")
_TIERS = ("Senior", "Mid-Level", "Junior")
_BENEFITS = ("Health Insurance", "Remote Work", "401k", "Flexible Hours")


def generate_fallback_jobs(
    query: str,
    location: str,
    skills: list[str],
    today: date | None = None,
) -> list[JobListing]:
    """Build 8 deterministic listings for ``query``.

    Companies, locations and seniority tiers cycle by position. Entry ``i``
    scores ``max(95 - 8*i, 50)`` and was posted ``i`` days before ``today``.
    """
    today = today or date.today()
    locations = (location or "Remote", *_OTHER_LOCATIONS)
    highlighted = ", ".join(skills[:3])

    jobs: list[JobListing] = []
    for i in range(FALLBACK_COUNT):
        jobs.append(JobListing(
            id=f"fallback-{i}",
            title=f"{query} - {_TIERS[i % len(_TIERS)]}",
            company=_COMPANIES[i % len(_COMPANIES)],
            location=locations[i % len(locations)],
            description=(
                f"We are seeking a talented {query} to join our dynamic team. "
                "This role involves working with cutting-edge technologies and "
                "collaborating with cross-functional teams to deliver innovative "
                f"solutions. The ideal candidate will have experience with {highlighted} "
                "and a passion for continuous learning."
            ),
            salary=f"${60000 + 10000 * i} - ${80000 + 15000 * i}",
            url=f"https://example.com/job/{i}",
            relevance_score=max(95 - 8 * i, 50),
            posted_date=(today - timedelta(days=i)).isoformat(),
            requirements=skills[:4],
            benefits=list(_BENEFITS),
        ))
    return jobs
