# Import models here so Alembic can discover metadata.
from commission_engine.models.affiliate_profile import AffiliateProfile  # noqa: F401
from commission_engine.models.campaign import Campaign  # noqa: F401
from commission_engine.models.click_event import ClickEvent  # noqa: F401
from commission_engine.models.revenue_record import RevenueRecord  # noqa: F401
from commission_engine.models.payout_record import PayoutRecord  # noqa: F401
from commission_engine.models.balance_adjustment import BalanceAdjustment  # noqa: F401
