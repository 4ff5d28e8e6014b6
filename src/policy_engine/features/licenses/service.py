from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from policy_engine.features.catalog.types import BANDWIDTH_USER_LEVEL, SiteSettings

from .types import LicenseCheck, LicenseSummary, PolicyUsage, UserAssignment


def check_license_availability(
    site: SiteSettings,
    policy_id: str,
    assignments: Iterable[UserAssignment],
    *,
    current_user_id: str | None = None,
    current_policy_id: str | None = None,
) -> LicenseCheck:
    """
    Whether a user may be given `policy_id` on this site.

    Rules:
    - New users count against the site-wide limit.
    - On userLevel sites a policy with a license_limit caps the users holding
      it; this applies to new users and to edits that switch policy.
    The user being edited (current_user_id) is excluded from every count.
    """
    others = [a for a in assignments if a.user_id != current_user_id]
    is_new_user = current_user_id is None

    total_used = len(others)
    total_limit = int(site.total_license_limit)
    if is_new_user and total_used >= total_limit:
        return LicenseCheck(
            available=False,
            error=f"Site license limit reached ({total_used}/{total_limit}). Cannot add new users.",
        )

    if site.bandwidth_type == BANDWIDTH_USER_LEVEL:
        policy = site.catalog.get(policy_id)
        if policy is not None and policy.license_limit is not None:
            used = sum(1 for a in others if a.policy_id == policy_id)
            limit = int(policy.license_limit)
            is_changing = current_policy_id is not None and current_policy_id != policy_id
            if (is_new_user or is_changing) and used >= limit:
                return LicenseCheck(
                    available=False,
                    error=(
                        f"License limit for selected policy reached ({used}/{limit}). "
                        "Please select a different policy."
                    ),
                )

    return LicenseCheck(available=True)


def license_summary(site: SiteSettings, assignments: Iterable[UserAssignment]) -> LicenseSummary:
    users = list(assignments)
    per_policy = Counter(a.policy_id for a in users if a.policy_id is not None)

    policies: list[PolicyUsage] = []
    if site.bandwidth_type == BANDWIDTH_USER_LEVEL:
        seen: set[str] = set()
        for p in site.catalog:
            # Daily and Monthly rows may share an ID; report it once
            if p.policy_id in seen:
                continue
            seen.add(p.policy_id)
            policies.append(
                PolicyUsage(
                    policy_id=p.policy_id,
                    used=per_policy.get(p.policy_id, 0),
                    limit=int(p.license_limit or 0),
                )
            )

    return LicenseSummary(
        used=len(users), limit=int(site.total_license_limit), policies=tuple(policies)
    )
