"""
msbase — Locale Middleware
===========================

What:  Resolves the language the client wants its messages in.
How:   Takes the first entry of `Accept-Language`, drops any `;q=` weight,
       and stores it verbatim as the request's locale. No content
       negotiation beyond that.
       "es-ES,es;q=0.9,en;q=0.8" → "es-ES"

Never fails. Without the header the locale stays at the configured
default, and an unknown locale simply makes translations fall back to
their raw keys.
"""

from typing import Optional

from msbase.context import Exchange
from msbase.middleware.base import Stage


def primary_language(header_value: Optional[str]) -> str:
    """Returns the first language of an Accept-Language value, or ''."""
    if not header_value:
        return ""
    first = header_value.split(",", 1)[0]
    return first.split(";", 1)[0].strip()


class LocaleMiddleware(Stage):
    def __init__(self, header_name: str = "Accept-Language", default_locale: str = ""):
        self.header_name = header_name
        self.default_locale = default_locale

    async def process(self, exchange: Exchange) -> Exchange:
        locale = primary_language(exchange.request.headers.get(self.header_name))
        return exchange.with_context(
            exchange.context.with_locale(locale or self.default_locale)
        )
