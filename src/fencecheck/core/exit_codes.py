"""Process exit codes; CI consumes these as the only signal."""

from __future__ import annotations

OK = 0
ERR_EXAMPLES = 1
ERR_USAGE = 2
ERR_INFRA = 3
ERR_SCAN = 4
ERR_CONFIG = 5
ERR_VALIDATION = 6
ERR_INTERNAL = 99
ERR_CANCELLED = 130
