"""
Unit tests for command orchestration.
"""
import pytest
import asyncio


def activate_with(host, settings, backend):
    from audio_debugger.extension import activate
    return activate(host, settings, speech_backend=backend)


ALL_COMMANDS = [
    "audio-debugger.readAloud",
    "audio-debugger.aiExplanation",
    "audio-debugger.aiDebugging",
]


class TestActivate:
    """Tests for activate/deactivate."""

    def test_registers_commands(self, make_host, test_settings, speech_backend):
        """Test all command ids are registered."""
        from audio_debugger.extension import SET_API_KEY

        extension = activate_with(make_host(), test_settings, speech_backend)
        assert set(extension.commands) == set(ALL_COMMANDS) | {SET_API_KEY}

    def test_execute_is_async(self, make_host, test_settings, speech_backend):
        extension = activate_with(make_host(), test_settings, speech_backend)
        assert asyncio.iscoroutinefunction(extension.execute)

    @pytest.mark.asyncio
    async def test_unknown_command(self, make_host, test_settings, speech_backend):
        extension = activate_with(make_host(), test_settings, speech_backend)
        with pytest.raises(KeyError):
            await extension.execute("audio-debugger.nope")

    @pytest.mark.asyncio
    async def test_deactivate_stops_speech(self, make_host, test_settings):
        from audio_debugger.extension import deactivate

        class SlowBackend:
            async def speak(self, text, voice, rate):
                await asyncio.sleep(10)

        extension = activate_with(make_host(), test_settings, SlowBackend())
        job = extension.speaker.speak("long text")
        await asyncio.sleep(0)

        deactivate(extension)
        await job.wait()

        assert job.task.cancelled()

    def test_create_speech_backend(self, make_host, test_settings):
        from audio_debugger.credentials import CredentialAccessor
        from audio_debugger.extension import create_speech_backend
        from audio_debugger.speech import OpenAISpeechBackend, SystemSpeechBackend

        host = make_host()
        credentials = CredentialAccessor(host.secrets, host.prompter, "k")

        test_settings.speech.backend = "system"
        assert isinstance(create_speech_backend(test_settings, credentials), SystemSpeechBackend)
        test_settings.speech.backend = "openai"
        assert isinstance(create_speech_backend(test_settings, credentials), OpenAISpeechBackend)
        test_settings.speech.backend = "robot"
        with pytest.raises(ValueError):
            create_speech_backend(test_settings, credentials)


class TestSelectionChecks:
    """Commands abort before any network or speech call."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command_id", ALL_COMMANDS)
    @pytest.mark.parametrize("selection", ["", "   ", "\n\t  \n"])
    async def test_empty_selection(self, make_host, test_settings, speech_backend, mock_http,
                                   command_id, selection):
        host = make_host(selection=selection, texts=["why?"])
        extension = activate_with(host, test_settings, speech_backend)

        with mock_http(json_body={}) as http:
            await extension.execute(command_id)
            await extension.speaker.drain()

        assert host.notifier.infos == ["No text selected"]
        assert speech_backend.spoken == []
        http.post.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command_id", ALL_COMMANDS)
    async def test_no_active_editor(self, make_host, test_settings, speech_backend, mock_http, command_id):
        host = make_host(selection=None)
        extension = activate_with(host, test_settings, speech_backend)

        with mock_http(json_body={}) as http:
            await extension.execute(command_id)

        assert host.notifier.infos == ["No editor is active"]
        assert speech_backend.spoken == []
        http.post.assert_not_called()


class TestReadAloud:

    @pytest.mark.asyncio
    async def test_speaks_selection(self, make_host, test_settings, speech_backend):
        host = make_host(selection="def f():\n    return 1\n")
        test_settings.speech.rate = 1.5
        extension = activate_with(host, test_settings, speech_backend)

        await extension.execute("audio-debugger.readAloud")
        await extension.speaker.drain()

        assert speech_backend.spoken == [("def f():\n    return 1\n", None, 1.5)]
        assert host.notifier.infos == []

    @pytest.mark.asyncio
    async def test_speech_failure_stays_inside(self, make_host, test_settings, failing_speech_backend):
        backend = failing_speech_backend
        extension = activate_with(make_host(), test_settings, backend)

        await extension.execute("audio-debugger.readAloud")
        await extension.speaker.drain()

        assert len(backend.spoken) == 1


class TestExplain:

    @pytest.mark.asyncio
    async def test_presents_answer_verbatim(self, make_host, test_settings, speech_backend,
                                            mock_http, completion_body):
        """print('hi') explained: the presenter gets the answer unchanged."""
        host = make_host(selection="print('hi')", choice="Text")
        extension = activate_with(host, test_settings, speech_backend)

        with mock_http(json_body=completion_body) as http:
            await extension.execute("audio-debugger.aiExplanation")

        assert host.notifier.texts == ["Prints hi to stdout."]
        messages = http.post.call_args.kwargs["json"]["messages"]
        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[1]["content"].endswith("print('hi')")
        assert messages[1]["content"].startswith("Explain")

    @pytest.mark.asyncio
    async def test_missing_key(self, make_host, test_settings, speech_backend, mock_http):
        from audio_debugger.model import MISSING_KEY_MESSAGE

        host = make_host(api_key=None, choice="Text")
        extension = activate_with(host, test_settings, speech_backend)

        with mock_http(json_body={}) as http:
            await extension.execute("audio-debugger.aiExplanation")

        http.post.assert_not_called()
        assert len(host.prompter.text_prompts) == 1
        assert host.notifier.texts == [MISSING_KEY_MESSAGE]

    @pytest.mark.asyncio
    async def test_non_ascii_key(self, make_host, test_settings, speech_backend):
        """A pasted key with a curly quote still ends in the fallback answer."""
        from audio_debugger.model import FALLBACK_MESSAGE

        test_settings.model.timeout = 2.0
        host = make_host(api_key="sk-abc\u2019def", choice="Text")
        extension = activate_with(host, test_settings, speech_backend)

        await extension.execute("audio-debugger.aiExplanation")

        assert host.notifier.texts == [FALLBACK_MESSAGE]

    @pytest.mark.asyncio
    async def test_secret_store_failure(self, make_host, test_settings, speech_backend, mock_http):
        """Unexpected errors become a generic info message."""
        host = make_host(choice="Text")

        async def broken(name):
            raise RuntimeError("keychain locked")

        host.secrets.get_secret = broken
        extension = activate_with(host, test_settings, speech_backend)

        with mock_http(json_body={}) as http:
            await extension.execute("audio-debugger.aiExplanation")

        http.post.assert_not_called()
        assert host.notifier.infos == ["An error occurred"]
        assert host.notifier.texts == []


class TestDebug:

    @pytest.mark.asyncio
    async def test_rate_limited(self, make_host, test_settings, speech_backend, mock_http):
        """x = 1/0 with HTTP 429: fallback presented, no retry."""
        from audio_debugger.model import FALLBACK_MESSAGE

        host = make_host(selection="x = 1/0", texts=["why does this crash?"], choice="Text")
        extension = activate_with(host, test_settings, speech_backend)

        with mock_http(status_code=429, json_body={"error": "slow down"}) as http:
            await extension.execute("audio-debugger.aiDebugging")

        assert http.post.await_count == 1
        assert host.notifier.texts == [FALLBACK_MESSAGE]

    @pytest.mark.asyncio
    async def test_query_in_request(self, make_host, test_settings, speech_backend,
                                    mock_http, completion_body):
        host = make_host(selection="x = 1/0", texts=["why does this crash?"], choice="Text")
        extension = activate_with(host, test_settings, speech_backend)

        with mock_http(json_body=completion_body) as http:
            await extension.execute("audio-debugger.aiDebugging")

        content = http.post.call_args.kwargs["json"]["messages"][1]["content"]
        assert "why does this crash?" in content
        assert content.endswith("x = 1/0")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", [None, "", "   "])
    async def test_query_dismissed(self, make_host, test_settings, speech_backend, mock_http, answer):
        from audio_debugger.extension import NO_QUERY_MESSAGE

        host = make_host(selection="x = 1/0", texts=[answer])
        extension = activate_with(host, test_settings, speech_backend)

        with mock_http(json_body={}) as http:
            await extension.execute("audio-debugger.aiDebugging")

        http.post.assert_not_called()
        assert host.notifier.infos == [NO_QUERY_MESSAGE]
        assert host.prompter.choice_prompts == []

    @pytest.mark.asyncio
    async def test_failure_strings_match_explain(self, make_host, test_settings, speech_backend, mock_http):
        """Explain and debug share one fallback string."""
        host = make_host(selection="x = 1/0", texts=["why?"], choice="Text")
        extension = activate_with(host, test_settings, speech_backend)

        with mock_http(status_code=500, json_body={}):
            await extension.execute("audio-debugger.aiDebugging")
            await extension.execute("audio-debugger.aiExplanation")

        assert len(host.notifier.texts) == 2
        assert host.notifier.texts[0] == host.notifier.texts[1]


class TestSetApiKey:

    @pytest.mark.asyncio
    async def test_overwrites_key(self, make_host, test_settings, speech_backend):
        from audio_debugger.extension import KEY_SAVED_MESSAGE

        host = make_host(api_key="old", texts=["new-key"])
        extension = activate_with(host, test_settings, speech_backend)

        await extension.execute("audio-debugger.setApiKey")

        assert await host.secrets.get_secret(test_settings.secrets.key_name) == "new-key"
        assert host.notifier.infos == [KEY_SAVED_MESSAGE]

    @pytest.mark.asyncio
    async def test_cancelled_keeps_key(self, make_host, test_settings, speech_backend):
        from audio_debugger.extension import KEY_NOT_SAVED_MESSAGE

        host = make_host(api_key="old", texts=[None])
        extension = activate_with(host, test_settings, speech_backend)

        await extension.execute("audio-debugger.setApiKey")

        assert await host.secrets.get_secret(test_settings.secrets.key_name) == "old"
        assert host.notifier.infos == [KEY_NOT_SAVED_MESSAGE]
