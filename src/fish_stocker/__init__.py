"""fish-stocker — Turn fish-stocking spreadsheets into queryable calendars."""

from datetime import timedelta, timezone

__version__ = "0.2.0"

# Arizona does not observe daylight saving time.
STOCK_TZ = timezone(timedelta(hours=-7), "AZ")
