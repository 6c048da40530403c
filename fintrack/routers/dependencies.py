from fastapi import Request

from fintrack.services.ledger import Ledger


def get_ledger(request: Request) -> Ledger:
    """The Ledger built at startup by create_app."""
    return request.app.state.ledger
