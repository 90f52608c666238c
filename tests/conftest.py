"""Test configuration and fixtures for Postdeck tests."""

import logging
import os
import pytest
import tempfile
import shutil
from pathlib import Path
import yaml

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from postdeck_pkg.filtering import PostCard


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(autouse=True)
def reset_postdeck_logger():
    """Drop handlers Postdeck attached so every test starts from a clean logger."""
    yield
    logger = logging.getLogger('Postdeck')
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def log_dir(temp_dir):
    return str(Path(temp_dir) / 'logs')


@pytest.fixture
def mock_content_dir(temp_dir):
    """Create a mock content directory with three posts in two categories."""
    content_dir = Path(temp_dir) / 'content'
    posts_dir = content_dir / 'posts'
    posts_dir.mkdir(parents=True)

    (content_dir / 'categories.yml').write_text(yaml.dump({
        'tech': 'Tech',
        'travel': {'name': 'Travel'},
    }, sort_keys=False))

    (content_dir / 'authors.yml').write_text(yaml.dump({
        1: {'name': 'Jane Smith'},
    }))

    (posts_dir / 'java-performance.md').write_text("""---
title: Java Performance
date: 2025-03-02
category: tech
author: 1
---

# Java Performance

Profiling the **JVM** starts with measuring, not guessing.
""")

    (posts_dir / 'lisbon-guide.md').write_text("""---
title: Lisbon Guide
date: 2025-02-14
category: travel
read_time: 7
---

Trams, custard tarts &amp; viewpoints for a long weekend.
""")

    (posts_dir / 'go-microservices.md').write_text("""---
title: Go Microservices
date: 2025-01-10
categories: [tech, backend]
---

Small services, clear contracts and a lot of gRPC.
""")

    return str(content_dir)


@pytest.fixture
def mock_templates_dir(temp_dir):
    """Create a minimal templates directory."""
    templates_dir = Path(temp_dir) / 'templates'
    templates_dir.mkdir()

    (templates_dir / 'base.html').write_text("""<!DOCTYPE html>
<html>
<head>
    <title>{{ title }}</title>
</head>
<body>
    {% block content %}{% endblock %}
</body>
</html>""")

    (templates_dir / 'post.html').write_text("""{% extends "base.html" %}
{% block content %}<article>{{ content|safe }}</article>{% endblock %}""")

    return str(templates_dir)


@pytest.fixture
def mock_output_dir(temp_dir):
    """Create a mock output directory."""
    output_dir = Path(temp_dir) / 'output'
    output_dir.mkdir()
    return str(output_dir)


@pytest.fixture
def sample_cards():
    """The three cards used throughout the filtering tests, in source order."""
    return [
        PostCard('tech', 'Java Performance', 'profiling the jvm starts with measuring',
                 'Tech Java Performance March 02, 2025 1 min read'),
        PostCard('travel', 'Lisbon Guide', 'trams, custard tarts and viewpoints',
                 'Travel Lisbon Guide February 14, 2025 7 min read'),
        PostCard('tech', 'Go Microservices', 'small services, clear contracts',
                 'Tech Go Microservices January 10, 2025 1 min read'),
    ]


class FakeTimer:
    """Stands in for ``threading.Timer``; fires only when the test says so."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args, **self.kwargs)


class FakeTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, function, args=None, kwargs=None):
        timer = FakeTimer(interval, function, args=args, kwargs=kwargs)
        self.timers.append(timer)
        return timer

    @property
    def live(self):
        return [t for t in self.timers if not t.cancelled]


@pytest.fixture
def fake_timers():
    return FakeTimerFactory()
