"""Lets the user pick how an AI answer is delivered."""

from audio_debugger.host import Notifier, Prompter
from audio_debugger.logging import get_logger
from audio_debugger.speech import Speaker

logger = get_logger("presenter")

CHOICE_TEXT = "Text"
CHOICE_SPEECH = "Speech"
CHOICE_BOTH = "Both"
CHOICES = (CHOICE_TEXT, CHOICE_SPEECH, CHOICE_BOTH)


class ResponsePresenter:
    """Shows, speaks, or shows and speaks a response."""

    def __init__(self, prompter: Prompter, notifier: Notifier, speaker: Speaker):
        self.prompter = prompter
        self.notifier = notifier
        self.speaker = speaker

    async def present(self, text: str) -> None:
        """Ask once and dispatch. Dismissing the choice does nothing."""
        choice = await self.prompter.prompt_choice(CHOICES, "How would you like to receive the response?")
        if choice is None:
            logger.debug("Response choice dismissed")
            return

        if choice in (CHOICE_TEXT, CHOICE_BOTH):
            self.notifier.show_text(text)
        if choice in (CHOICE_SPEECH, CHOICE_BOTH):
            self.speaker.speak(text)
        if choice not in CHOICES:
            logger.warn("Unknown response choice", choice=choice)
