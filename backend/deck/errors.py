"""Error kinds raised by the deck engine."""


class DeckError(Exception):
    """Base class for deck engine errors."""


class GatewayFailure(DeckError):
    """An upstream generation or scoring call failed or returned nothing usable."""


class ContentRejected(DeckError):
    """The content gate judged a prompt not creepy enough."""

    def __init__(self, score: float) -> None:
        self.score = score
        super().__init__(
            f"Your prompt scored {score:.2f}. Please try a more terrifying idea!"
        )


class StorageCorrupt(DeckError):
    """The persisted user-card list could not be decoded."""


class EmptyDeck(DeckError):
    """The deck has no cards to show."""


class DeckBusy(DeckError):
    """A generation operation is in flight; the card list cannot be changed."""
