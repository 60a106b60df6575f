"""TLS certificate loading.

The server runs HTTPS when both the certificate chain and the private key
load, and falls back to plain HTTP otherwise. A broken or missing pair is
not an error: it is logged and the server starts without TLS.
"""

import logging
import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TLSConfig:
    cert_path: Path
    key_path: Path


def load_tls(cert_path: str, key_path: str) -> Optional[TLSConfig]:
    """Validate a PEM certificate/key pair.

    Returns None (HTTP mode) when either file is missing or they do not
    form a usable pair.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        context.load_cert_chain(certfile=cert_path, keyfile=key_path)
    except (OSError, ssl.SSLError) as exc:
        logger.warning(
            "Could not load TLS certificates: %s. Server will start in HTTP mode.", exc
        )
        return None

    logger.info("TLS enabled using certificates at %s and %s", cert_path, key_path)
    return TLSConfig(cert_path=Path(cert_path), key_path=Path(key_path))
