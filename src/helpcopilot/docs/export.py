"""Exports of a module's help: one text file per command, or fine-tuning JSONL."""

import json
import time
from pathlib import Path
from typing import Callable

import openai
from openai import OpenAI
from tqdm import tqdm

from helpcopilot.ai.openai.exceptions import OpenAIRateLimitError, from_openai_error
from helpcopilot.ai.usage import UsageTracker
from helpcopilot.docs.introspection import HelpProvider, collect_help, render_help
from helpcopilot.docs.schemas import HelpDocument
from helpcopilot.utils.logger import logger

RATE_LIMIT_BACKOFF_SECONDS = 60.0
MAX_RATE_LIMIT_RETRIES = 3

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions about the {module} module."
)

PARAPHRASE_PROMPT = (
    "Write one short question a user might ask that is answered by the help "
    "below. Reply with the question only.\n\n{help}"
)


def split_docs_into_files(provider: HelpProvider, output_dir: Path) -> list[Path]:
    """Write each command's rendered help to ``<output_dir>/<command>.txt``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for doc in collect_help(provider):
        path = output_dir / f"{doc.name}.txt"
        path.write_text(render_help(doc), encoding="utf-8")
        paths.append(path)

    logger.info("Split help into files", module_name=provider.module_name, files=len(paths))
    return paths


def _default_question(doc: HelpDocument, module: str) -> str:
    return f"How do I use {doc.name} from {module}?"


def _answer(doc: HelpDocument) -> str:
    lines = [doc.synopsis or f"{doc.name} has no synopsis."]
    if doc.description:
        lines.append(doc.description)
    if doc.example:
        lines.append(f"Example:\n{doc.example}")
    return "\n\n".join(lines)


class QuestionGenerator:
    """Asks a chat model for a natural question a command's help answers."""

    def __init__(
        self,
        client: OpenAI,
        model: str,
        usage: UsageTracker | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.model = model
        self.usage = usage
        self._sleep = sleep

    def __call__(self, doc: HelpDocument) -> str:
        prompt = PARAPHRASE_PROMPT.format(help=render_help(doc))
        for attempt in range(MAX_RATE_LIMIT_RETRIES + 1):
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=100,
                )
                break
            except openai.RateLimitError as e:
                if attempt >= MAX_RATE_LIMIT_RETRIES:
                    raise OpenAIRateLimitError(
                        f"Rate limited generating a question for {doc.name}",
                        attempts=attempt,
                    ) from e
                logger.warning(
                    "Rate limited, backing off",
                    command=doc.name,
                    wait_seconds=RATE_LIMIT_BACKOFF_SECONDS,
                )
                self._sleep(RATE_LIMIT_BACKOFF_SECONDS)
            except openai.OpenAIError as e:
                logger.error("Question generation failed", command=doc.name, error=str(e))
                raise from_openai_error(f"Generating a question for {doc.name}", e) from e

        if self.usage is not None and response.usage is not None:
            self.usage.add(
                self.model,
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
            )
        return (response.choices[0].message.content or "").strip()


def export_training_data(
    provider: HelpProvider,
    output_path: Path,
    system_prompt: str | None = None,
    question_generator: Callable[[HelpDocument], str] | None = None,
    show_progress: bool = False,
) -> int:
    """Write chat fine-tuning examples, one JSON object per line.

    Every command yields a templated question. With a question generator an
    extra example is written using the generated question.

    Returns:
        int: Number of examples written
    """
    module = provider.module_name
    system = system_prompt or DEFAULT_SYSTEM_PROMPT.format(module=module)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    documents = collect_help(provider)
    written = 0
    with open(output_path, "w", encoding="utf-8") as f:
        for doc in tqdm(documents, desc=f"Exporting {module}", disable=not show_progress):
            questions = [_default_question(doc, module)]
            if question_generator is not None:
                generated = question_generator(doc)
                if generated:
                    questions.append(generated)

            answer = _answer(doc)
            for question in questions:
                example = {
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": question},
                        {"role": "assistant", "content": answer},
                    ]
                }
                f.write(json.dumps(example) + "\n")
                written += 1

    logger.info("Exported training data", module_name=module, examples=written, path=str(output_path))
    return written
