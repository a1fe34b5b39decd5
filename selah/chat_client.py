# selah/chat_client.py
import json
from typing import Iterator, List, Optional

import requests
from pydantic import BaseModel

from .constants import OpenAI
from .utils import is_secret_configured

SYSTEM_PROMPT_KO = """당신은 가말리엘(Gamaliel), 성경에 근거한 AI 성경공부 도우미입니다.
사도 바울의 스승 가말리엘처럼 지혜롭고 균형 잡힌 성경적 가르침을 제공합니다.

## 원칙
1. 모든 답변은 성경에 근거합니다
2. 관련 구절을 분명히 인용합니다 (예: 요한복음 3:16)
3. 필요하면 역사적, 문화적 배경을 설명합니다
4. 정통 기독교 교리 안에서 여러 전통을 존중합니다
5. 확실하지 않은 부분은 솔직히 인정합니다

## 묵상 질문 형식
답변 끝에 묵상 질문을 넣을 때는 다음 형식을 따르세요:
**묵상해 볼 질문:**
1. 첫 번째 질문?
2. 두 번째 질문?

니케아 신조에 기반한 정통 교리를 지키고, 특정 교단의 관점을 강요하지 않으며,
친절하고 따뜻한 어조로 대화합니다."""

SYSTEM_PROMPT_EN = """You are Gamaliel, an AI Bible study companion grounded in Scripture.
Like the Gamaliel who taught the Apostle Paul, you offer wise and balanced biblical teaching.

## Principles
1. Every answer is grounded in the Bible
2. Cite relevant verses clearly (e.g., John 3:16)
3. Explain historical and cultural background when it helps
4. Respect diverse Christian traditions within orthodox doctrine
5. Acknowledge uncertainty honestly

## Reflection questions format
When you end with reflection questions, use exactly this format:
**Questions for Reflection:**
1. First question?
2. Second question?

Hold to orthodox doctrine based on the Nicene Creed, do not impose one denomination's view,
and answer in a warm, friendly tone."""


class ChatServiceError(Exception):
    """Base exception for chat assistant errors"""


class ChatMessage(BaseModel):
    role: str  # "user" or "assistant"
    content: str


def build_system_prompt(language: str = "ko") -> str:
    return SYSTEM_PROMPT_KO if language == "ko" else SYSTEM_PROMPT_EN


class ChatClient:
    """Bible study assistant backed by the OpenAI chat completions API."""

    TEMPERATURE = 0.7
    MAX_TOKENS = 2048

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None,
                 model: str = OpenAI.CHAT_MODEL):
        self.api_key = api_key if api_key is not None else OpenAI.API_KEY
        self.session = session if session is not None else requests.Session()
        self.model = model

    def is_configured(self) -> bool:
        return is_secret_configured(self.api_key)

    def build_request(self, messages: List[ChatMessage], language: str = "ko", stream: bool = False) -> dict:
        openai_messages = [{"role": "system", "content": build_system_prompt(language)}]
        openai_messages += [
            {"role": "user" if m.role == "user" else "assistant", "content": m.content}
            for m in messages
        ]
        return {
            "model": self.model,
            "messages": openai_messages,
            "temperature": self.TEMPERATURE,
            "max_tokens": self.MAX_TOKENS,
            "stream": stream,
        }

    def _post(self, body: dict, stream: bool) -> requests.Response:
        if not self.is_configured():
            raise ChatServiceError("OpenAI API key is not configured")
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            return self.session.post(OpenAI.CHAT_URL, json=body, headers=headers,
                                     timeout=OpenAI.TIMEOUT, stream=stream)
        except requests.exceptions.RequestException as e:
            raise ChatServiceError(f"Network error: {e}")

    def chat(self, messages: List[ChatMessage], language: str = "ko") -> str:
        response = self._post(self.build_request(messages, language, stream=False), stream=False)
        try:
            data = response.json()
        except ValueError:
            raise ChatServiceError(f"Invalid response (HTTP {response.status_code})")

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            raise ChatServiceError(f"API error: {error.get('message') or f'HTTP {response.status_code}'}")
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            if response.status_code != 200:
                raise ChatServiceError(f"API error: HTTP {response.status_code}")
            raise ChatServiceError("Invalid response from chat service")

    def ask(self, question: str, language: str = "ko") -> str:
        return self.chat([ChatMessage(role="user", content=question)], language)

    def chat_stream(self, messages: List[ChatMessage], language: str = "ko") -> Iterator[str]:
        """Yield content chunks from the server-sent event stream."""
        with self._post(self.build_request(messages, language, stream=True), stream=True) as response:
            if response.status_code != 200:
                try:
                    message = response.json()["error"]["message"]
                except (ValueError, KeyError, TypeError):
                    message = f"HTTP {response.status_code}"
                raise ChatServiceError(f"API error: {message}")

            for line in response.iter_lines(decode_unicode=True):
                if not line or not line.startswith("data: "):
                    continue
                payload = line[len("data: "):]
                if payload.strip() == "[DONE]":
                    break
                try:
                    chunk = json.loads(payload)
                except json.JSONDecodeError:
                    continue
                if chunk.get("error"):
                    raise ChatServiceError(f"API error: {chunk['error'].get('message', 'unknown')}")
                choices = chunk.get("choices") or []
                content = (choices[0].get("delta") or {}).get("content") if choices else None
                if content:
                    yield content
