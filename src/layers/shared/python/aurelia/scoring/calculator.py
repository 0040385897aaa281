"""Lead score calculation (pure logic, no DB or I/O).

Maps a SignalSnapshot to a weighted total, a per-rule breakdown and a
display tier. Each rule contributes at most once; banded rules (time on
site, scroll depth) award only the highest band reached.
"""

from aurelia.models.lead_score import LeadScore, LeadTier, SignalSnapshot

# Page rules: breakdown key -> (paths that fire it, weight)
PAGE_RULES: tuple[tuple[str, tuple[str, ...], int], ...] = (
    ("pricing_page", ("/pricing", "/membership"), 15),
    ("services_page", ("/services",), 10),
    ("contact_page", ("/contact",), 10),
    ("trial_page", ("/trial", "/apply"), 20),
)

SERVICES_VIEWED_THRESHOLD = 3
SERVICES_VIEWED_WEIGHT = 10

# Descending (threshold, weight) bands
TIME_ON_SITE_BANDS: tuple[tuple[int, int], ...] = ((600, 15), (300, 10), (120, 5))
SCROLL_DEPTH_BANDS: tuple[tuple[int, int], ...] = ((90, 8), (75, 5), (50, 3))

RETURN_VISITOR_WEIGHT = 20
MULTIPLE_SESSIONS_THRESHOLD = 3
MULTIPLE_SESSIONS_WEIGHT = 15

UTM_LINKEDIN_WEIGHT = 25
UTM_GOOGLE_CPC_WEIGHT = 20
UTM_REFERRAL_WEIGHT = 15
UTM_EMAIL_WEIGHT = 10

FORM_INTERACTION_WEIGHT = 5
FORM_INTERACTION_CAP = 25

TRIAL_STARTED_WEIGHT = 30

# Descending (minimum total, tier)
TIER_THRESHOLDS: tuple[tuple[int, LeadTier], ...] = (
    (80, LeadTier.QUALIFIED),
    (50, LeadTier.HOT),
    (25, LeadTier.WARM),
)


def normalize_path(path: str) -> str:
    """Lowercase a path and strip query string, fragment and trailing slash."""
    path = path.split("?", 1)[0].split("#", 1)[0].strip().lower()
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


def _visited(pages: set[str], targets: tuple[str, ...]) -> bool:
    for page in pages:
        for target in targets:
            if page == target or page.startswith(target + "/"):
                return True
    return False


def _highest_band(value: float, bands: tuple[tuple[int, int], ...]) -> int | None:
    for threshold, weight in bands:
        if value >= threshold:
            return weight
    return None


def utm_weight(utm_source: str | None, utm_medium: str | None) -> int | None:
    """Weight of the first matching attribution rule, or None."""
    source = (utm_source or "").strip().lower()
    medium = (utm_medium or "").strip().lower()

    if source == "linkedin":
        return UTM_LINKEDIN_WEIGHT
    if source == "google" and medium == "cpc":
        return UTM_GOOGLE_CPC_WEIGHT
    if medium == "referral":
        return UTM_REFERRAL_WEIGHT
    if medium == "email":
        return UTM_EMAIL_WEIGHT
    return None


def tier_for_total(total: int) -> LeadTier:
    """Display tier for a score total."""
    for minimum, tier in TIER_THRESHOLDS:
        if total >= minimum:
            return tier
    return LeadTier.COLD


def compute_score(snapshot: SignalSnapshot) -> LeadScore:
    """Compute the weighted lead score for a snapshot.

    Deterministic and side-effect free.
    """
    breakdown: dict[str, int] = {}

    pages = {normalize_path(p) for p in snapshot.pages_visited}
    for rule, targets, weight in PAGE_RULES:
        if _visited(pages, targets):
            breakdown[rule] = weight

    if snapshot.services_viewed >= SERVICES_VIEWED_THRESHOLD:
        breakdown["services_viewed_3plus"] = SERVICES_VIEWED_WEIGHT

    time_weight = _highest_band(snapshot.time_on_site_seconds, TIME_ON_SITE_BANDS)
    if time_weight is not None:
        breakdown["time_engagement"] = time_weight

    scroll_weight = _highest_band(snapshot.scroll_depth_percent, SCROLL_DEPTH_BANDS)
    if scroll_weight is not None:
        breakdown["scroll_depth"] = scroll_weight

    if snapshot.return_visits >= 1:
        breakdown["return_visitor"] = RETURN_VISITOR_WEIGHT
    if snapshot.return_visits >= MULTIPLE_SESSIONS_THRESHOLD:
        breakdown["multiple_sessions"] = MULTIPLE_SESSIONS_WEIGHT

    attribution = utm_weight(snapshot.utm_source, snapshot.utm_medium)
    if attribution is not None:
        breakdown["utm_quality"] = attribution

    if snapshot.form_interactions > 0:
        breakdown["form_interaction"] = min(
            snapshot.form_interactions * FORM_INTERACTION_WEIGHT,
            FORM_INTERACTION_CAP,
        )

    if snapshot.trial_started:
        breakdown["trial_started"] = TRIAL_STARTED_WEIGHT

    total = sum(breakdown.values())
    return LeadScore(total=total, breakdown=breakdown, tier=tier_for_total(total))
