from pathlib import Path
from typing import Any, Dict, List


def load_prompts() -> Dict[str, Dict[str, Dict[str, str]]]:
    """Load prompt templates from the system/ and user/ folders.

    Templates are grouped by subfolder, so ``system/questions/evaluate_answer.txt``
    ends up at ``PROMPTS["system"]["questions"]["evaluate_answer"]``.
    """
    prompts = {"system": {}, "user": {}}

    prompts_dir = Path(__file__).parent

    def load_prompts_from_directory(base_dir: Path) -> Dict[str, Any]:
        prompts_dict = {}
        for file_or_folder in sorted(base_dir.iterdir()):
            if file_or_folder.is_dir():
                prompts_dict[file_or_folder.name] = load_prompts_from_directory(
                    file_or_folder
                )

            elif file_or_folder.is_file() and file_or_folder.suffix == ".txt":
                prompt_name = file_or_folder.stem
                if prompt_name in prompts_dict:
                    raise ValueError(
                        f"Duplicate prompt name: {prompt_name} in {file_or_folder.parent}"  # noqa: E501
                    )
                prompts_dict[prompt_name] = file_or_folder.read_text(
                    encoding="utf-8"
                ).strip()

        return prompts_dict

    for kind in ("system", "user"):
        kind_dir = prompts_dir / kind
        if kind_dir.exists():
            prompts[kind] = load_prompts_from_directory(kind_dir)

    return prompts


PROMPTS = load_prompts()


def build_messages(group: str, name: str, /, **values: Any) -> List[Dict[str, str]]:
    """Build chat messages from the system prompt and the formatted user prompt."""
    return [
        {"role": "system", "content": PROMPTS["system"][group][name]},
        {"role": "user", "content": PROMPTS["user"][group][name].format(**values)},
    ]
