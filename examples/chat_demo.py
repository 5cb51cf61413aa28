"""Minimal demonstration of a history-aware chat session."""

import asyncio

from ollama_core import ChatMessage, ChatMessageRequest, StreamError, create_chat_agent


async def main() -> None:
    agent = create_chat_agent(history=True)
    first = await agent.send_with_history(
        "demo",
        ChatMessageRequest(model_name="llama3", messages=[ChatMessage.user("Why is the sky blue?")]),
    )
    print("Assistant:", first.message.content)

    stream = await agent.send_stream_with_history(
        "demo",
        ChatMessageRequest(model_name="llama3", messages=[ChatMessage.user("Say it in one sentence.")]),
    )
    async for item in stream:
        if isinstance(item, StreamError):
            print("\n[stream error]", item.error.message)
            break
        if item.message:
            print(item.message.content, end="", flush=True)
    print()
    print("Turns stored:", len(agent.get_history("demo")))


if __name__ == "__main__":
    asyncio.run(main())
