"""
Test helpers shared across modules.
"""


def default_answers(**overrides: str) -> dict[str, str]:
    """Answers for a full run that accepts every default."""
    answers = {
        "repo_path": "~/cva6",
        "install_path": "~/riscv",
        "use_all_threads": "y",
        "custom_config": "n",
        "install_docs": "n",
        "run_tests": "n",
        "persist_env": "y",
    }
    answers.update(overrides)
    return answers
