from __future__ import annotations

# primary roles, as issued in the token's "role" claim
ROLES = frozenset({
    "admin", "president", "vpi", "vpx", "treasurer", "secretary",
    "junior_active", "active", "alumni", "inactive",
})

# award points, manage categories, decide brother dates
POINTS_OFFICER_ROLES = frozenset({"admin", "president", "vpi"})
SEMESTER_MANAGER_ROLES = frozenset({"admin", "president", "treasurer"})

# never shown on a leaderboard
NON_RANKED_ROLES = frozenset({"alumni", "inactive"})

# chair positions ("chairs" claim) that carry scoped permissions
CHAIR_POSITIONS = frozenset({"recruitment", "alumni", "social", "social_media", "brotherhood", "historian"})
BROTHER_DATE_CHAIRS = frozenset({"brotherhood"})
