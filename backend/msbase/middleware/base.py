"""
msbase — Middleware Contract & Chain Composition
=================================================

What:  The interface every middleware implements and the function that
       folds a list of them around a terminal handler.
Why:   Each route gets its own chain (auth is appended per route), so
       composition has to be an ordinary function, not framework magic.
How:   A middleware receives the next handler and the shared error handler
       and returns a new handler. `chain_middleware` applies the list from
       the last element to the first, so the FIRST middleware in the list is
       the OUTERMOST: it sees the request first and the finished response
       last.

Per-request state machine:
    Pending → Stage₁ → Stage₂ → … → Stageₙ → Dispatched
    Pending → … → ErrorHandled   (a stage called handle_error and stopped)

Two ways to write a middleware:
    - subclass `Middleware` and implement `execute` when you need to run code
      around `next` (timing, try/finally);
    - subclass `Stage` and implement `process` when you only inspect the
      request and either return an updated exchange or raise.
"""

from abc import ABC, abstractmethod
from functools import reduce
from typing import Awaitable, Callable, Optional, Sequence

from msbase.context import Exchange

# Handler: runs one request to completion, writing through exchange.writer
Handler = Callable[[Exchange], Awaitable[None]]

# ErrorHandler(exchange, error, suggested_status): writes the error response
ErrorHandler = Callable[[Exchange, BaseException, Optional[int]], Awaitable[None]]


class Middleware(ABC):
    """A composable request-processing step."""

    @abstractmethod
    def execute(self, next_handler: Handler, handle_error: ErrorHandler) -> Handler:
        """
        Wrap `next_handler`.

        The returned handler either calls `next_handler` (possibly with an
        updated exchange) or calls `handle_error` and returns without
        calling `next_handler`.
        """


class Stage(Middleware):
    """
    A middleware that continues with an updated exchange or terminates.

    `process` returns the exchange the rest of the chain should see, or
    raises. On raise, the shared error handler gets the error together with
    `suggested_status` and nothing downstream runs.
    """

    suggested_status: Optional[int] = None

    @abstractmethod
    async def process(self, exchange: Exchange) -> Exchange:
        ...

    def execute(self, next_handler: Handler, handle_error: ErrorHandler) -> Handler:
        async def handler(exchange: Exchange) -> None:
            try:
                exchange = await self.process(exchange)
            except Exception as e:
                await handle_error(exchange, e, self.suggested_status)
                return
            await next_handler(exchange)

        return handler


def chain_middleware(
    handler: Handler,
    handle_error: ErrorHandler,
    middlewares: Sequence[Middleware],
) -> Handler:
    """Compose `middlewares` around `handler`; the first one ends up outermost."""
    return reduce(
        lambda wrapped, middleware: middleware.execute(wrapped, handle_error),
        reversed(middlewares),
        handler,
    )
