# commission_engine/core/roles.py

import enum


class PlatformRole(str, enum.Enum):
    ADMIN = "ADMIN"          # payouts, adjustments, manual conversions
    AFFILIATE = "AFFILIATE"  # own dashboard only
