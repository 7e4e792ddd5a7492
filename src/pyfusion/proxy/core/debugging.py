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
"""Debug sink — dumps generated source and disassembly to disk."""

from __future__ import annotations

import dis
import io
from pathlib import Path

import structlog

from pyfusion.proxy.core.emitter import GeneratedClass
from pyfusion.proxy.exceptions import CodeGenerationError

logger = structlog.get_logger("pyfusion.proxy.debugging")


class DebugClassWriter:
    """Writes ``<location>/<pkg>/<mod>/<Name>.py`` plus a ``.dis`` sibling.

    The files are for humans only and are never read back.
    """

    def __init__(self, location: str | Path) -> None:
        self.location = Path(location)

    def target(self, class_name: str) -> Path:
        return self.location.joinpath(*class_name.split("."))

    def write(self, generated: GeneratedClass) -> list[Path]:
        base = self.target(generated.name)
        source_path = base.with_name(base.name + ".py")
        dis_path = base.with_name(base.name + ".dis")

        listing = io.StringIO()
        dis.dis(generated.code, file=listing)
        try:
            base.parent.mkdir(parents=True, exist_ok=True)
            source_path.write_text(generated.source, encoding="utf-8")
            dis_path.write_text(listing.getvalue(), encoding="utf-8")
        except OSError as exc:
            raise CodeGenerationError(generated.name, f"cannot write debug dump to {self.location}: {exc}") from exc

        logger.info("proxy_debug_dump_written", class_name=generated.name, path=str(source_path))
        return [source_path, dis_path]
