"""
Doit file to wrap development workflow commands.
"""

import shutil
from pathlib import Path

from doit import task_params
from doit.task import Task
from doit.tools import create_folder

PACKAGE = "note_mirror"
SOURCES = sorted(str(p) for p in Path(PACKAGE).rglob("*.py"))

# artifact output
OUT_PATH = Path("__out__")

# test coverage results
TESTS_PATH = OUT_PATH / "test"
JUNIT_PATH = TESTS_PATH / "junit.xml"
COV_PATH = TESTS_PATH / "cov"
COV_HTML_PATH = COV_PATH / "html"
COV_XML_PATH = COV_PATH / "coverage.xml"

# static analysis results
ANALYSIS_PATH = OUT_PATH / "analysis"
MYPY_PATH = ANALYSIS_PATH / "mypy"
MYPY_HTML_PATH = MYPY_PATH / "html"


def cleanup_dir(output_dir: Path):
    if output_dir.exists():
        shutil.rmtree(output_dir)


def task_pytest() -> Task:
    """
    Run pytest and generate coverage reports.
    """

    args = [
        "pytest",
        f"--cov={PACKAGE}",
        f"--cov-report=html:{COV_HTML_PATH}",
        f"--cov-report=xml:{COV_XML_PATH}",
        f"--junitxml={JUNIT_PATH}",
    ]

    return Task(
        "test",
        actions=[
            (create_folder, [COV_PATH]),
            " ".join(args),
        ],
        targets=[
            f"{COV_HTML_PATH}/index.html",
            COV_XML_PATH,
            JUNIT_PATH,
        ],
        file_dep=SOURCES,
        clean=[(cleanup_dir, [COV_PATH])],
    )


@task_params(
    [
        {
            "name": "port",
            "long": "port",
            "type": int,
            "default": 8000,
            "help": "Port for sync endpoints",
        }
    ]
)
def task_serve(port: int) -> Task:
    """
    Run sync endpoints locally with auto-reload.
    """

    args = [
        "uvicorn",
        "--factory",
        f"{PACKAGE}.server:create_app",
        "--reload",
        f"--port {port}",
    ]

    return Task(
        "serve",
        actions=[" ".join(args)],
        targets=[],
        file_dep=[],
        uptodate=[False],
    )


def task_format() -> Task:
    """
    Run formatters.
    """

    isort_args = [
        "isort",
        PACKAGE,
        "test",
    ]

    black_args = [
        "black",
        PACKAGE,
        "test",
    ]

    return Task(
        "format",
        actions=[
            " ".join(isort_args),
            " ".join(black_args),
        ],
        targets=[],
        file_dep=[],
    )


def task_analysis() -> Task:
    """
    Run static analysis.
    """

    mypy_args = [
        "mypy",
        "--html-report",
        str(MYPY_HTML_PATH),
        PACKAGE,
    ]

    return Task(
        "analysis",
        actions=[
            (create_folder, [MYPY_HTML_PATH]),
            " ".join(mypy_args),
        ],
        targets=[],
        file_dep=[],
        clean=[(cleanup_dir, [ANALYSIS_PATH])],
    )
