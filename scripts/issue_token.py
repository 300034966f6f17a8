"""Issue a bearer token for local development.

Usage:
    python -m scripts.issue_token <role> [actor-uuid] [hours]

Roles: admin, merchant, customer. A random actor id is used when omitted.
The token is signed with JWT_SECRET from the environment or .env.
"""

from __future__ import annotations

import logging
import sys
import uuid
from datetime import timedelta

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


def main(argv: list[str]) -> int:
    from app.core.security import Role, create_access_token

    if not argv or argv[0] not in {r.value for r in Role}:
        logger.error(__doc__)
        return 2

    role = Role(argv[0])
    actor_id = uuid.UUID(argv[1]) if len(argv) > 1 else uuid.uuid4()
    hours = int(argv[2]) if len(argv) > 2 else 12

    token = create_access_token(actor_id, role, expires_in=timedelta(hours=hours))
    logger.info(f"{role.value} {actor_id}, valid for {hours}h")
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
