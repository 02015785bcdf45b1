"""
Lemonade Backend: Confirmation Number Generator
================================================

What:  Produces the customer-facing token that identifies a placed order.
How:   `secrets.token_hex()` over N random bytes (16 by default, i.e. 128 bits),
       upper-cased for readability, e.g. "9F2C0A7E41B3D85C6E0F1A2B3C4D5E6F".

The token is independent of every database id and carries no ordering. Its
only contract is uniqueness: collisions are cryptographically negligible at
128 bits, and the orders.confirmation_number UNIQUE constraint rejects one
should it ever happen.
"""

import secrets

MIN_TOKEN_BYTES = 16


class ConfirmationNumberGenerator:
    """
    Callable token source injected into the order processor.

    Args:
        nbytes: Random bytes per token (>= 16). Tokens are 2 * nbytes hex characters.
    """

    def __init__(self, nbytes: int = MIN_TOKEN_BYTES):
        if nbytes < MIN_TOKEN_BYTES:
            raise ValueError(f"nbytes must be at least {MIN_TOKEN_BYTES} (got {nbytes})")
        self.nbytes = nbytes

    def __call__(self) -> str:
        return secrets.token_hex(self.nbytes).upper()
