"""Kerberos credentials backed by GSSAPI.

Importing this module requires the ``kerberos`` extra (``gssapi``). Callers
resolve :class:`KerberosToken` by name so the rest of the package works
without it.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path

import gssapi

from .tokens import AuthenticationToken


class KerberosToken(AuthenticationToken):
    """Ticket-based credential for a Kerberos principal.

    With only a principal the current ticket cache must already hold valid
    credentials. With a keytab the principal logs in from it; when
    ``replace_current_user`` is set the login goes to a private in-memory
    cache so an existing session is not reused.
    """

    def __init__(
        self,
        principal: str,
        keytab: str | os.PathLike[str] | None = None,
        replace_current_user: bool = False,
    ) -> None:
        self.principal = principal
        self.keytab = Path(keytab) if keytab is not None else None
        self.replace_current_user = replace_current_user
        name = gssapi.Name(principal, name_type=gssapi.NameType.kerberos_principal)
        if self.keytab is None:
            self._credentials: gssapi.Credentials | None = gssapi.Credentials(name=name, usage="initiate")
        else:
            store = {"client_keytab": str(self.keytab)}
            if replace_current_user:
                store["ccache"] = f"MEMORY:accumulo-{uuid.uuid4().hex}"
            self._credentials = gssapi.Credentials(name=name, usage="initiate", store=store)

    @property
    def credentials(self) -> gssapi.Credentials:
        if self._credentials is None:
            raise ValueError("Token has been destroyed")
        return self._credentials

    @property
    def lifetime(self) -> int | None:
        """Remaining credential lifetime in seconds."""

        return self.credentials.lifetime

    def destroy(self) -> None:
        self._credentials = None

    def is_destroyed(self) -> bool:
        return self._credentials is None

    def __repr__(self) -> str:
        return f"KerberosToken(principal={self.principal!r}, keytab={self.keytab!r})"


__all__ = ["KerberosToken"]
