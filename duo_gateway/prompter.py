from typing import List, Protocol


class Prompter(Protocol):
    """Interactive decisions the handshake needs from the user."""

    def choose(self, prompt: str, options: List[str]) -> int:
        ...

    def require_string(self, prompt: str) -> str:
        ...


class ConsolePrompter:
    """Prompter reading answers from stdin."""

    def choose(self, prompt: str, options: List[str]) -> int:
        print(f"\n{prompt}:")
        for i, option in enumerate(options, 1):
            print(f"  {i}. {option}")

        while True:
            try:
                choice = int(input("Choice: ").strip()) - 1
            except ValueError:
                print("Please enter a number.")
                continue
            if 0 <= choice < len(options):
                return choice
            print(f"Please enter a number between 1 and {len(options)}.")

    def require_string(self, prompt: str) -> str:
        while True:
            value = input(f"{prompt}: ").strip()
            if value:
                return value
            print("A value is required.")
