"""Shared fixtures for integration tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from covtree.adapters.coverage.exec_data import write_exec_file
from covtree.models.execution import ExecutionRecord, SessionInfo, class_id_for

# ── Marker registration ──────────────────────────────────────────


def pytest_configure(config: pytest.Config) -> None:
    """Register the ``integration`` marker."""
    config.addinivalue_line("markers", "integration: integration tests")


# ── File creation helpers ────────────────────────────────────────


def write_file(root: Path, rel: str, content: str) -> None:
    """Write *content* to a file under *root*."""
    f = root / rel
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(content, encoding="utf-8")


def write_probes(root: Path, rel: str, class_name: str, probes: tuple[bool, ...]) -> None:
    """Write an exec file with one session and one record under *root*."""
    write_exec_file(
        root / rel,
        [SessionInfo(f"session-{class_name}", 1, 2)],
        [ExecutionRecord(class_id_for(class_name), class_name, probes)],
    )


# ── Project scaffolding fixtures ─────────────────────────────────

_MODULE_A_REPORT = """\
<?xml version="1.0" encoding="UTF-8"?>
<report name="module-a">
  <package name="com/example">
    <class name="com/example/Foo" sourcefilename="Foo.java">
      <counter type="BRANCH" missed="1" covered="1"/>
      <counter type="LINE" missed="2" covered="8"/>
      <counter type="METHOD" missed="1" covered="3"/>
    </class>
    <sourcefile name="Foo.java">
      <line nr="7" mi="3" ci="0" mb="0" cb="0"/>
      <line nr="8" mi="2" ci="0" mb="0" cb="0"/>
    </sourcefile>
  </package>
  <package name="com/example/util">
    <class name="com/example/util/Gen" sourcefilename="Gen.java">
      <counter type="LINE" missed="5" covered="0"/>
      <counter type="METHOD" missed="2" covered="0"/>
    </class>
    <sourcefile name="Gen.java"/>
  </package>
</report>
"""

_MODULE_B_REPORT = """\
<?xml version="1.0" encoding="UTF-8"?>
<report name="module-b">
  <package name="org/demo">
    <class name="org/demo/Main" sourcefilename="Main.java">
      <counter type="LINE" missed="0" covered="4"/>
      <counter type="METHOD" missed="0" covered="2"/>
    </class>
    <class name="org/demo/MapperImpl" sourcefilename="MapperImpl.java">
      <counter type="LINE" missed="9" covered="0"/>
      <counter type="METHOD" missed="3" covered="0"/>
    </class>
    <sourcefile name="Main.java"/>
    <sourcefile name="MapperImpl.java"/>
  </package>
</report>
"""


@pytest.fixture()
def multi_module_project(tmp_path: Path) -> Path:
    """Create a two-module Maven-style project with reports and exec files.

    ``module-a/.../util/Gen.java`` is excluded by a file pattern declared at
    the project root; ``module-b``'s ``MapperImpl`` is a generated source.
    """
    root = tmp_path.resolve()
    write_file(
        root,
        ".covtree.yml",
        "inputs:\n"
        "  scan_modules: true\n"
        "exclusions:\n"
        "  files:\n"
        "    - module-a/src/main/java/com/example/util/**\n"
        "  ignore_build_dir: true\n",
    )
    write_file(root, "module-a/target/site/jacoco/jacoco.xml", _MODULE_A_REPORT)
    write_file(root, "module-b/target/site/jacoco/jacoco.xml", _MODULE_B_REPORT)
    write_file(
        root,
        "module-b/target/generated-sources/annotations/org/demo/MapperImpl.java",
        "package org.demo;\n\npublic class MapperImpl {}\n",
    )
    write_probes(root, "module-a/target/jacoco.exec", "com/example/Foo", (True, False, False))
    write_probes(root, "module-b/target/jacoco.exec", "com/example/Foo", (False, False, True))
    return root
