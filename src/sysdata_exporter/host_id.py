"""
Host ID resolution for Sysdata Exporter.

Prefers identifiers the OS already keeps (DMI product UUID, machine-id) and
falls back to a generated UUID persisted under the state directory.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

PRODUCT_UUID_PATH = Path("/sys/class/dmi/id/product_uuid")

MACHINE_ID_PATHS = [
    Path("/etc/machine-id"),
    Path("/var/lib/dbus/machine-id"),
]

HOST_ID_FILENAME = "host-id"


def get_host_id(state_dir: str | None = None) -> str:
    """
    Return a stable unique identifier for this host.

    Args:
        state_dir: Directory where a generated ID is persisted when the OS
                   offers none.

    Returns:
        The host ID as a lowercase UUID string.
    """
    host_id = _read_product_uuid()
    if host_id:
        return host_id

    host_id = _read_machine_id()
    if host_id:
        return host_id

    return _get_persisted_host_id(state_dir)


def _read_product_uuid() -> str | None:
    try:
        value = PRODUCT_UUID_PATH.read_text().strip()
        return str(uuid.UUID(value))
    except (OSError, ValueError):
        # Usually readable by root only
        return None


def _read_machine_id() -> str | None:
    for path in MACHINE_ID_PATHS:
        try:
            value = path.read_text().strip()
        except OSError:
            continue
        try:
            # machine-id is 32 hex characters without dashes
            return str(uuid.UUID(hex=value))
        except ValueError:
            logger.debug(f"Ignoring malformed machine id in {path}")
    return None


def _get_persisted_host_id(state_dir: str | None) -> str:
    """Read or create the generated host ID under state_dir."""
    host_id_path = Path(state_dir or ".") / HOST_ID_FILENAME

    if host_id_path.exists():
        try:
            host_id = host_id_path.read_text().strip()
            uuid.UUID(host_id)
            logger.debug(f"Using existing host ID from {host_id_path}")
            return host_id
        except (ValueError, OSError) as e:
            logger.warning(f"Invalid or unreadable host ID file: {e}. Generating new ID.")

    host_id = str(uuid.uuid4())

    try:
        host_id_path.parent.mkdir(parents=True, exist_ok=True)
        host_id_path.write_text(host_id)
        host_id_path.chmod(0o600)
        logger.info(f"Generated and stored new host ID: {host_id} at {host_id_path}")
    except OSError as e:
        logger.warning(
            f"Failed to write host ID to {host_id_path}: {e}. "
            f"Using ephemeral ID for this session."
        )

    return host_id
