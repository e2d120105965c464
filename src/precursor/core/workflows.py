"""GitHub Actions workflow documents per detected stack."""

from typing import Any

from ..config import PrecursorConfig, WorkflowConfig
from ..models import Stack

_TRIGGERS = {
    "push": {"branches": ["main", "master"]},
    "pull_request": {"branches": ["main", "master"]},
}

_CHECKOUT = {"name": "Checkout", "uses": "actions/checkout@v4"}


def _workflow(name: str, job: str, runs_on: str, steps: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "name": name,
        "on": _TRIGGERS,
        "jobs": {job: {"runs-on": runs_on, "steps": [_CHECKOUT, *steps]}},
    }


def _python_steps(config: PrecursorConfig) -> list[dict[str, Any]]:
    steps: list[dict[str, Any]] = [
        {"name": "Install uv", "uses": "astral-sh/setup-uv@v4"},
        {"name": "Install dependencies", "run": "uv sync"},
        {"name": "Ruff check", "run": "uv run ruff check ."},
        {"name": "Ruff format check", "run": "uv run ruff format --check ."},
    ]
    checker = config.python.typechecker
    if checker and checker != "none":
        steps.append({"name": "Type check", "run": f"uv run {checker} ."})
    steps.append({"name": "Run tests", "run": "uv run pytest"})
    return steps


def _web_steps(config: PrecursorConfig) -> list[dict[str, Any]]:
    steps: list[dict[str, Any]] = [
        {"name": "Setup Bun", "uses": "oven-sh/setup-bun@v2"},
        {"name": "Install dependencies", "run": "bun install"},
        {"name": "Biome check", "run": "bunx biome check ."},
    ]
    if config.web.typechecker and config.web.typechecker != "none":
        steps.append({"name": "TypeScript check", "run": "bunx tsc --noEmit"})
    steps.append({"name": "Run tests", "run": "bun test"})
    return steps


def _rust_steps(config: PrecursorConfig) -> list[dict[str, Any]]:
    steps: list[dict[str, Any]] = [
        {"name": "Install Rust", "uses": f"dtolnay/rust-toolchain@{config.rust.toolchain}"},
        {
            "name": "Cache cargo",
            "uses": "actions/cache@v4",
            "with": {
                "path": "~/.cargo",
                "key": "${{ runner.os }}-cargo-${{ hashFiles('**/Cargo.lock') }}",
            },
        },
        {"name": "Format check", "run": "cargo fmt --check"},
        {"name": "Clippy", "run": "cargo clippy -- -D warnings"},
        {"name": "Run tests", "run": "cargo test"},
    ]
    if config.rust.audit:
        steps.append(
            {
                "name": "Audit dependencies",
                "uses": "rustsec/audit-check@v2",
                "with": {"token": "${{ secrets.GITHUB_TOKEN }}"},
            }
        )
    if config.rust.deny:
        steps.append({"name": "Cargo deny", "uses": "EmbarkStudios/cargo-deny-action@v2"})
    return steps


def _docker_steps(config: PrecursorConfig) -> list[dict[str, Any]]:
    steps: list[dict[str, Any]] = []
    if config.docker.lint:
        steps.append(
            {
                "name": "Lint Dockerfile",
                "uses": "hadolint/hadolint-action@v3.1.0",
                "with": {"dockerfile": "Dockerfile"},
            }
        )
    steps.append({"name": "Build Docker image", "run": "docker build -t ci-image ."})
    return steps


def _cpp_steps(runs_on: str) -> list[dict[str, Any]]:
    if "ubuntu" in runs_on:
        install = "sudo apt-get update && sudo apt-get install -y clang-format clang-tidy"
    else:
        install = "brew install llvm"
    return [
        {"name": "Install clang tools", "run": install},
        {"name": "Configure CMake", "run": "cmake -B build -DCMAKE_EXPORT_COMPILE_COMMANDS=ON"},
        {"name": "Build", "run": "cmake --build build"},
        {"name": "Run tests", "run": "ctest --test-dir build", "continue-on-error": True},
    ]


_TITLES = {
    Stack.PYTHON: "Python CI",
    Stack.WEB: "Web CI",
    Stack.RUST: "Rust CI",
    Stack.CPP: "C/C++ CI",
    Stack.DOCKER: "Docker CI",
}


def stack_workflow(
    stack: Stack, config: PrecursorConfig, workflow_config: WorkflowConfig
) -> dict[str, Any]:
    """Workflow document for .github/workflows/<stack>.yml.

    Runs on the first configured OS; with several, a matrix over all of them.
    """
    oses = workflow_config.os or ["ubuntu-latest"]
    runs_on = oses[0] if len(oses) == 1 else "${{ matrix.os }}"

    if stack is Stack.PYTHON:
        steps = _python_steps(config)
    elif stack is Stack.WEB:
        steps = _web_steps(config)
    elif stack is Stack.RUST:
        steps = _rust_steps(config)
    elif stack is Stack.CPP:
        steps = _cpp_steps(oses[0])
    else:
        steps = _docker_steps(config)

    workflow = _workflow(_TITLES[stack], "test", runs_on, steps)
    if len(oses) > 1 or workflow_config.matrix:
        matrix = {"os": oses} if len(oses) > 1 else {}
        matrix.update(workflow_config.matrix or {})
        workflow["jobs"]["test"]["strategy"] = {"matrix": matrix}
    return workflow


def precursor_workflow() -> dict[str, Any]:
    """Workflow document for .github/workflows/precursor.yml."""
    return _workflow(
        "Precursor CI",
        "precursor",
        "ubuntu-latest",
        [
            {"name": "Setup Python", "uses": "actions/setup-python@v5"},
            {"name": "Install precursor", "run": "pip install precursor"},
            {"name": "Run doctor", "run": "precursor --json scan"},
        ],
    )
