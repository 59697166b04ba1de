"""Shared test data."""

OPENAI_KEY = "sk-proj-abcdefghijklmnop1234"  # 28 chars, OpenAI project key
MOONSHOT_KEY = "sk-" + "m" * 45  # long-form Moonshot key


def completion_body(content: str = "Hello!", model: str = "gpt-3.5-turbo") -> dict:
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 9, "completion_tokens": 3, "total_tokens": 12},
    }
