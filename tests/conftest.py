# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import os
import sys

import pytest

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

from woodpecker.config import CodecSettings, TrainingSettings, settings  # noqa: E402

SAMPLE_TOON = """context:
  topic: Sample_Set

quiz[1]{question,answer,explanation,tag}:
What is 2+2?,4,Basic math,Arithmetic / Easy

options:
3,4,5,6
"""


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep WOODPECKER_* variables from the host out of tests and drop cached settings."""
    for key in list(os.environ):
        if key.startswith("WOODPECKER_"):
            monkeypatch.delenv(key, raising=False)
    settings.reset()
    yield
    settings.reset()


@pytest.fixture
def sample_toon() -> str:
    return SAMPLE_TOON


@pytest.fixture
def codec_settings() -> CodecSettings:
    return CodecSettings(_env_file=None)


@pytest.fixture
def training_settings() -> TrainingSettings:
    return TrainingSettings(_env_file=None)
