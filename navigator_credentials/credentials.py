"""
Credential records attached to project cards.

Three disclosure patterns are supported:

- ``reference``: a link to an external dashboard, no secret material.
- ``encrypted``: an AES-256-GCM cipher text plus its masked display.
- ``external``: a pointer into a third-party secret manager.

Switching a credential to another pattern builds a new record that keeps
only ``id``, ``name`` and ``note``.
"""
import uuid
import logging
from collections.abc import Iterable
from typing import Annotated, Literal, Optional, Union

import orjson
from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError as ModelValidationError,
)

from .exceptions import ValidationError

logger = logging.getLogger("navigator.credentials")

MAX_NAME_LENGTH = 100
MAX_NOTE_LENGTH = 500

REFERENCE = "reference"
ENCRYPTED = "encrypted"
EXTERNAL = "external"


def _new_id() -> str:
    return uuid.uuid4().hex


class BaseCredential(BaseModel):
    """Fields shared by every credential pattern."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=_new_id, min_length=1)
    name: str = ""
    note: Optional[str] = None

    @property
    def has_secret(self) -> bool:
        return False


class ReferenceCredential(BaseCredential):
    """Pointer to an external dashboard."""

    type: Literal["reference"] = REFERENCE
    reference_url: Optional[str] = None


class EncryptedCredential(BaseCredential):
    """Secret stored as cipher text, displayed masked."""

    type: Literal["encrypted"] = ENCRYPTED
    cipher_text: Optional[str] = Field(default=None, repr=False)
    masked_display: Optional[str] = None
    key_id: Optional[str] = None

    @property
    def has_secret(self) -> bool:
        return bool(self.cipher_text)


class ExternalCredential(BaseCredential):
    """Pointer into a third-party secret manager (1Password, Bitwarden...)."""

    type: Literal["external"] = EXTERNAL
    location: Optional[str] = None


Credential = Annotated[
    Union[ReferenceCredential, EncryptedCredential, ExternalCredential],
    Field(discriminator="type"),
]

CREDENTIAL_TYPES: dict[str, type[BaseCredential]] = {
    REFERENCE: ReferenceCredential,
    ENCRYPTED: EncryptedCredential,
    EXTERNAL: ExternalCredential,
}

_credential_list = TypeAdapter(list[Credential])
_http_url = TypeAdapter(AnyHttpUrl)


def credential_class(credential_type: str) -> type[BaseCredential]:
    """Return the model class for a credential type name."""
    try:
        return CREDENTIAL_TYPES[credential_type]
    except KeyError:
        raise ValidationError(
            f"Unknown credential type: {credential_type!r}"
        ) from None


def new_credential(credential_type: str = REFERENCE, **fields) -> BaseCredential:
    """Build a credential of the given type."""
    cls = credential_class(credential_type)
    try:
        return cls(**fields)
    except ModelValidationError as err:
        raise ValidationError(str(err)) from err


def switch_variant(credential: BaseCredential, credential_type: str) -> BaseCredential:
    """Rebuild ``credential`` as another type.

    Only ``id``, ``name`` and ``note`` survive; every type-specific field
    of the previous pattern is dropped.
    """
    cls = credential_class(credential_type)
    if isinstance(credential, cls):
        return credential
    return cls(id=credential.id, name=credential.name, note=credential.note)


def update_credential(credential: BaseCredential, **fields) -> BaseCredential:
    """Return a validated copy of ``credential`` with ``fields`` changed."""
    if "type" in fields and fields["type"] != credential.type:
        raise ValidationError("Use switch_variant to change a credential type")
    if "id" in fields and fields["id"] != credential.id:
        raise ValidationError("Credential id cannot be changed")
    data = credential.model_dump()
    data.update(fields)
    try:
        return type(credential).model_validate(data)
    except ModelValidationError as err:
        raise ValidationError(str(err)) from err


# ---------------------------------------------------------------------------
# Commit validation
# ---------------------------------------------------------------------------

def validate_credential(
    credential: BaseCredential,
    max_name_length: int = MAX_NAME_LENGTH,
    max_note_length: int = MAX_NOTE_LENGTH,
) -> None:
    """Check a credential before it is handed to a store.

    Raises:
        ValidationError: If the record cannot be committed.
    """
    if not credential.name or not credential.name.strip():
        raise ValidationError("Credential name is required")
    if len(credential.name) > max_name_length:
        raise ValidationError(
            f"Credential name must be {max_name_length} characters or less"
        )
    if credential.note and len(credential.note) > max_note_length:
        raise ValidationError(
            f"Credential note must be {max_note_length} characters or less"
        )
    if isinstance(credential, ReferenceCredential) and credential.reference_url:
        try:
            _http_url.validate_python(credential.reference_url)
        except ModelValidationError as err:
            raise ValidationError(
                f"Invalid reference URL for credential {credential.name!r}: "
                "URL must start with http:// or https://"
            ) from err
    if isinstance(credential, EncryptedCredential):
        if not credential.cipher_text and not credential.masked_display:
            raise ValidationError(
                "Encrypted credential must have cipher_text or masked_display"
            )


def committable(
    credentials: Iterable[BaseCredential],
    max_name_length: int = MAX_NAME_LENGTH,
    max_note_length: int = MAX_NOTE_LENGTH,
) -> list[BaseCredential]:
    """Filter and validate credentials about to be saved.

    Rows without a name are drafts: they are dropped, not rejected.
    Any other violation aborts the commit.

    Raises:
        ValidationError: If a named credential is invalid.
    """
    result = []
    for credential in credentials:
        if not credential.name or not credential.name.strip():
            logger.warning(
                "Dropping credential id=%s: credential name is required",
                credential.id,
            )
            continue
        validate_credential(credential, max_name_length, max_note_length)
        result.append(credential)
    return result


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def dump_credentials(credentials: Iterable[BaseCredential]) -> bytes:
    """Serialize credentials to JSON bytes."""
    return orjson.dumps([c.model_dump(mode="json") for c in credentials])


def load_credentials(data: Union[bytes, str]) -> list[BaseCredential]:
    """Deserialize credentials produced by :func:`dump_credentials`.

    Raises:
        ValidationError: If the payload is not a valid credential list.
    """
    try:
        return _credential_list.validate_python(orjson.loads(data))
    except orjson.JSONDecodeError as err:
        raise ValidationError(f"Malformed credential payload: {err}") from err
    except ModelValidationError as err:
        raise ValidationError(str(err)) from err
