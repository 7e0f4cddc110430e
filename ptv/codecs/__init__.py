"""Codec registry: pluggable format hub.

WHY: The calling layer (``convert``, CLI, HTTP endpoint) needs a single
lookup to find the right codec by name. A central table makes adding a
format trivial: write the codec class, list it in BUILTIN_CODECS.

HOW: A process-wide dict maps format names to codec *instances* (codecs are
stateless, so one instance is shared). ``register_builtin_codecs`` fills it
from the explicit BUILTIN_CODECS enumeration and is called once, when this
package is imported. Lookups are plain dict reads; writes take a lock.

RULES:
- Names are snake_case and unique; registering a name again replaces it
- ``get`` returns None for an unknown name and never raises
- ``list_codecs`` is sorted
- Codec modules never register themselves on import
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Tuple

from ptv.codecs.base import Codec
from ptv.codecs.combolist import (
    ComboEmailPassCodec,
    ComboExtendedCodec,
    ComboUserPassCodec,
    ComboUserPassUrlCodec,
)
from ptv.codecs.hashlist import (
    HashlistHashSaltCodec,
    HashlistPlainCodec,
    HashlistUserHashCodec,
    PotFileCodec,
)
from ptv.codecs.kerberos_keytab import KerberosKeytabCodec
from ptv.codecs.modular_crypt import ModularCryptCodec
from ptv.codecs.plaintext import PlaintextCodec
from ptv.codecs.protobuf import ProtobufCodec
from ptv.codecs.ptv_json import PTVJsonCodec
from ptv.codecs.rainbow_table import RainbowTableCodec
from ptv.codecs.thrift import ThriftCodec
from ptv.codecs.unix_accounts import HtpasswdCodec, PasswdCodec, ShadowCodec

logger = logging.getLogger(__name__)

_REGISTRY: Dict[str, Codec] = {}
_LOCK = threading.Lock()

BUILTIN_CODECS: Tuple[Codec, ...] = (
    KerberosKeytabCodec(),
    ThriftCodec(),
    ProtobufCodec(),
    RainbowTableCodec(),
    HashlistPlainCodec(),
    HashlistUserHashCodec(),
    HashlistHashSaltCodec(),
    PotFileCodec("jtr_pot"),
    PotFileCodec("hashcat_pot"),
    ModularCryptCodec(),
    HtpasswdCodec(),
    ShadowCodec(),
    PasswdCodec(),
    PlaintextCodec(),
    ComboUserPassCodec(),
    ComboEmailPassCodec(),
    ComboUserPassUrlCodec(),
    ComboExtendedCodec(),
    PTVJsonCodec(),
)


def register(codec: Codec) -> None:
    """Add ``codec`` under its own name, replacing any previous holder."""
    with _LOCK:
        if codec.name in _REGISTRY:
            logger.debug("Replacing codec registered as %r", codec.name)
        _REGISTRY[codec.name] = codec


def get(name: str) -> Optional[Codec]:
    if not isinstance(name, str):
        return None
    return _REGISTRY.get(name)


def list_codecs() -> List[str]:
    """Return every registered format name, sorted."""
    with _LOCK:
        return sorted(_REGISTRY)


def register_builtin_codecs() -> None:
    for codec in BUILTIN_CODECS:
        register(codec)


register_builtin_codecs()
