"""
Account identifiers accepted by the batch lookup.

The union is closed: an identifier is exactly one of the four frozen
dataclasses below.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class UidIdentifier:
    uid: str


@dataclass(frozen=True)
class EmailIdentifier:
    email: str


@dataclass(frozen=True)
class PhoneIdentifier:
    phone_number: str


@dataclass(frozen=True)
class ProviderIdentifier:
    provider_id: str
    provider_uid: str


Identifier = Union[UidIdentifier, EmailIdentifier, PhoneIdentifier, ProviderIdentifier]
