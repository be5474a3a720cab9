"""Run the yearly leave reset for every policy (or the ones named on the command line).

Run:
  PYTHONPATH=backend python scripts/reset_leaves.py
  PYTHONPATH=backend python scripts/reset_leaves.py "Casual Leave" "Medical Leave"
"""

from __future__ import annotations

import logging
import sys

from sqlalchemy import select

from app.db.session import SessionLocal
from app.models.leave_policy import LeavePolicy
from app.services.leave_policies import yearly_reset, yearly_reset_all

logger = logging.getLogger("reset_leaves")


def main(names: list[str]) -> int:
    with SessionLocal() as session:
        if names:
            policies = list(session.execute(select(LeavePolicy).where(LeavePolicy.name.in_(names))).scalars())
            missing = sorted(set(names) - {policy.name for policy in policies})
            if missing:
                logger.error("Unknown leave policies: %s", ", ".join(missing))
                return 1
            summary = {policy.name: yearly_reset(session, policy) for policy in policies}
        else:
            by_id = yearly_reset_all(session)
            names_by_id = dict(session.execute(select(LeavePolicy.id, LeavePolicy.name)).tuples())
            summary = {names_by_id.get(policy_id, policy_id): count for policy_id, count in by_id.items()}
        session.commit()

    print("\nYearly reset complete:")
    for name, count in sorted(summary.items()):
        print(f"  - {name}: {count} account(s)")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    sys.exit(main(sys.argv[1:]))
