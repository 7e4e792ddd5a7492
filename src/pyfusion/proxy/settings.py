# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Proxy engine settings bound from the ``fusion.proxy`` config section."""

from __future__ import annotations

import threading
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict

from pyfusion.core.config import Config, config_properties
from pyfusion.logging.port import LoggingPort

logger = structlog.get_logger("pyfusion.proxy.settings")


@config_properties(prefix="fusion.proxy")
class ProxyProperties(BaseModel):
    """Engine-wide switches.

    ``debug_location`` enables the debug sink; ``stress_hash_codes``
    forces every generated name onto the same hash so collision probing
    can be exercised.
    """

    model_config = ConfigDict(frozen=True)

    debug_location: str | None = None
    use_cache: bool = True
    stress_hash_codes: bool = False
    intercept_during_construction: bool = True


_lock = threading.Lock()
_current: ProxyProperties | None = None


def configure(config: Config | None = None, logging_port: LoggingPort | None = None) -> ProxyProperties:
    """Bind and install the active properties.

    Without *config* the framework defaults plus ``fusion.yaml`` /
    ``fusion.toml`` from the working directory are used. When
    *logging_port* is given it is configured from the same config
    (``fusion.logging``) before the properties are bound; the lazy
    binding in :func:`current` never touches logging.
    """
    global _current
    if config is None:
        config = Config.from_sources(Path.cwd())
    if logging_port is not None:
        logging_port.configure(config)
    properties = config.bind(ProxyProperties)
    with _lock:
        _current = properties
    logger.debug(
        "proxy_settings_configured",
        debug_location=properties.debug_location,
        use_cache=properties.use_cache,
        stress_hash_codes=properties.stress_hash_codes,
    )
    return properties


def current() -> ProxyProperties:
    """Return the active properties, binding them on first use."""
    properties = _current
    if properties is None:
        properties = configure()
    return properties


def reset() -> None:
    """Forget the active properties; the next :func:`current` rebinds."""
    global _current
    with _lock:
        _current = None
