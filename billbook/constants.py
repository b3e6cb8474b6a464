from zoneinfo import ZoneInfo

from billbook.settings import settings

REFERENCE_TZ = ZoneInfo(settings.timezone)

DATE_FORMAT = "DD/MM/YYYY"

INVOICE_NUMBER_WIDTH = 5
FIRST_INVOICE_NUMBER = "1".zfill(INVOICE_NUMBER_WIDTH)
LEGACY_INVOICE_PREFIX = "INV-"
