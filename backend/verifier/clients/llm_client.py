import json
import logging
import time
from typing import Dict, Any, List, Optional, Union
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

Prompt = Union[str, List[Any]]

class LLMClient:
    def __init__(
        self,
        provider: str,
        model: str,
        api_key: Optional[str],
        timeout: Optional[float] = None,
        log_calls: bool = True,
        log_dir: str = "./logs",
    ):
        self.provider = provider
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.log_calls = log_calls
        self.log_dir = Path(log_dir)

        if provider == "gemini":
            import google.generativeai as genai
            genai.configure(api_key=api_key)
            self.client = genai.GenerativeModel(model)
        else:
            raise ValueError(f"Unsupported LLM provider: {provider}")

    def call(
        self,
        prompt: Prompt,
        temperature: float = 0.3,
        max_tokens: int = 1000,
        json_output: bool = False,
    ) -> Dict[str, Any]:
        """Call LLM and log the interaction.

        ``prompt`` is either plain text or a list of content parts (text and
        inline image blobs) for multimodal requests.
        """
        start = time.time()

        generation_config = {
            "temperature": temperature,
            "max_output_tokens": max_tokens,
        }
        if json_output:
            generation_config["response_mime_type"] = "application/json"
        request_options = {"timeout": self.timeout} if self.timeout else None

        try:
            response = self.client.generate_content(
                prompt,
                generation_config=generation_config,
                request_options=request_options,
            )
            result = {
                "response": response.text,
                "prompt_tokens": 0,
                "completion_tokens": 0,
                "total_tokens": 0,
            }

            usage = getattr(response, "usage_metadata", None)
            if usage is not None:
                result["prompt_tokens"] = getattr(usage, "prompt_token_count", 0) or 0
                result["completion_tokens"] = getattr(usage, "candidates_token_count", 0) or 0
                result["total_tokens"] = getattr(usage, "total_token_count", 0) or 0

            latency_ms = (time.time() - start) * 1000
            result["latency_ms"] = latency_ms

            self._log_call(prompt, result)

            return result
        except Exception as e:
            logger.error(f"LLM call failed: {str(e)}")
            raise

    def _log_call(self, prompt: Prompt, result: Dict[str, Any]):
        """Log LLM calls for debugging and cost analysis."""
        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "provider": self.provider,
            "model": self.model,
            "prompt_length": _prompt_length(prompt),
            "tokens": result["total_tokens"],
            "latency_ms": result["latency_ms"],
            "response_length": len(result["response"])
        }

        logger.info(f"LLM Call: {log_entry}")

        if not self.log_calls:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        with open(self.log_dir / "llm_calls.jsonl", "a") as f:
            f.write(json.dumps(log_entry) + "\n")


def _prompt_length(prompt: Prompt) -> int:
    if isinstance(prompt, str):
        return len(prompt)
    return sum(len(p) for p in prompt if isinstance(p, str))
