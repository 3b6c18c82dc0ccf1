import logging

from agent import build_agent, describe
from config import LOG_LEVEL, get_settings


def chat_loop():
    print("Clinware Intelligence Agent. Type exit/quit to leave.")

    # one Agent for the whole loop keeps the conversation in memory
    agent = build_agent(get_settings(), verbose=True)

    while True:
        query = input("\nYou: ").strip()
        if query.lower() in {"exit", "quit"}:
            print("Bye.")
            break
        if not query:
            continue
        try:
            details = agent.get_completion(query, return_details=True)
        except Exception as exc:
            logging.getLogger(__name__).exception("Turn failed")
            print(f"\nError: {exc}")
            continue
        print("\nAgent:")
        print(describe(details))


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    chat_loop()
