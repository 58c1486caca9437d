#!/usr/bin/env python3
"""
Test suite for configuration and provider selection.
"""

import json
import logging
import stat
from unittest.mock import Mock, patch

import pytest
from rich.logging import RichHandler

from hececiz import config
from hececiz import llm
from hececiz.practice.state import SessionTimings


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv('HECECIZ_HOME', str(tmp_path / 'home'))
    for info in llm.PROVIDERS.values():
        monkeypatch.delenv(info['env_var'], raising=False)
    return tmp_path / 'home'


class TestConfig:
    """Config file, defaults and logging"""

    def test_config_dir_override(self, isolated_home):
        assert config.get_config_dir() == isolated_home
        assert isolated_home.is_dir()

    def test_defaults(self):
        assert config.load_config() == {}
        assert config.get_config_value('celebration_delay') == 2.5
        assert config.get_config_value('retry_delay') == 1.5
        assert config.get_config_value('pronounce_delay') == 0.5
        assert config.get_config_value('unknown', 'fallback') == 'fallback'

    def test_saved_values_win(self):
        config.set_config_value('retry_delay', 3)
        assert config.get_config_value('retry_delay') == 3
        assert SessionTimings.from_config() == SessionTimings(2.5, 3.0, 0.5)

    def test_config_file_private(self):
        config.save_config({'gemini_api_key': 'AIxyz'})
        mode = stat.S_IMODE(config.get_config_path().stat().st_mode)
        assert mode == 0o600

    def test_corrupt_config_reads_empty(self):
        config.get_config_path().write_text('{not json')
        assert config.load_config() == {}

    def test_db_path(self, isolated_home, tmp_path):
        assert config.get_db_path() == isolated_home / 'profiles.db'
        config.set_config_value('db_path', str(tmp_path / 'other.db'))
        assert config.get_db_path() == tmp_path / 'other.db'

    def test_configure_logging(self):
        logger = config.configure_logging(verbose=True)
        assert logger.level == logging.DEBUG
        config.configure_logging(verbose=False)
        assert logger.level == logging.WARNING
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1


class TestProviders:
    """Key lookup and client creation"""

    def test_no_keys(self):
        assert llm.get_available_providers() == []
        assert llm.get_preferred_provider() is None
        assert llm.create_llm_client() is None

    def test_env_beats_config(self, monkeypatch):
        config.save_config({'gemini_api_key': 'AIfromfile'})
        monkeypatch.setenv('GOOGLE_API_KEY', 'AIfromenv')
        assert llm.get_api_key_for_provider('gemini') == 'AIfromenv'

    def test_preferred_provider(self, monkeypatch):
        monkeypatch.setenv('GOOGLE_API_KEY', 'AIkey')
        monkeypatch.setenv('OPENAI_API_KEY', 'sk-key')
        assert llm.get_preferred_provider() == 'gemini'
        config.save_config({'preferred_provider': 'openai'})
        assert llm.get_preferred_provider() == 'openai'

    def test_unknown_provider(self):
        assert llm.get_api_key_for_provider('nope') is None
        assert llm.create_llm_client('nope') is None

    def test_missing_sdk_returns_none(self, monkeypatch):
        monkeypatch.setenv('ANTHROPIC_API_KEY', 'sk-ant-key')
        failing = Mock(side_effect=ImportError("no module"))
        with patch.dict(llm.PROVIDERS['anthropic'], {'client_class': failing}):
            assert llm.create_llm_client('anthropic') is None
        failing.assert_called_once_with(api_key='sk-ant-key', model=None)

    def test_client_created_with_key(self, monkeypatch):
        monkeypatch.setenv('OPENAI_API_KEY', 'sk-key')
        factory = Mock()
        with patch.dict(llm.PROVIDERS['openai'], {'client_class': factory}):
            client = llm.create_llm_client(model='gpt-test')
        factory.assert_called_once_with(api_key='sk-key', model='gpt-test')
        assert client is factory.return_value


class TestClientPayloads:
    """Each provider client sends the image and asks for JSON"""

    def test_anthropic_image_block(self):
        client = llm.AnthropicClient.__new__(llm.AnthropicClient)
        client.client = Mock()
        client.model_name = 'claude-test'
        client.provider = 'anthropic'
        reply = Mock()
        reply.content = [Mock(text='{"isCorrect": true}')]
        client.client.messages.create.return_value = reply

        response = client.classify_image(b'\xff\xd8jpeg', 'image/jpeg', 'check it')

        kwargs = client.client.messages.create.call_args.kwargs
        image_block, text_block = kwargs['messages'][0]['content']
        assert image_block['source'] == {'type': 'base64', 'media_type': 'image/jpeg', 'data': '/9hqcGVn'}
        assert text_block == {'type': 'text', 'text': 'check it'}
        assert response.content == '{"isCorrect": true}'

    def test_openai_data_url(self):
        client = llm.OpenAIClient.__new__(llm.OpenAIClient)
        client.client = Mock()
        client.model_name = 'gpt-test'
        client.provider = 'openai'
        reply = Mock()
        reply.choices = [Mock(message=Mock(content='{"isCorrect": false}'))]
        reply.usage = None
        client.client.chat.completions.create.return_value = reply

        response = client.classify_image(b'\xff\xd8jpeg', 'image/jpeg', 'check it')

        kwargs = client.client.chat.completions.create.call_args.kwargs
        assert kwargs['response_format'] == {'type': 'json_object'}
        image_part = kwargs['messages'][0]['content'][1]
        assert image_part['image_url']['url'] == 'data:image/jpeg;base64,/9hqcGVn'
        assert response.usage is None

    def test_gemini_inline_image(self):
        client = llm.GeminiClient.__new__(llm.GeminiClient)
        client.model = Mock()
        client.model.generate_content.return_value = Mock(text='{"isCorrect": true}')
        client.model_name = 'gemini-test'
        client.provider = 'gemini'

        client.classify_image(b'jpeg', 'image/jpeg', 'check it')

        parts = client.model.generate_content.call_args.args[0]
        assert parts == [{'mime_type': 'image/jpeg', 'data': b'jpeg'}, 'check it']
        generation = client.model.generate_content.call_args.kwargs['generation_config']
        assert generation['response_mime_type'] == 'application/json'
