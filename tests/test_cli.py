"""Tests for the postdeck command line."""

import os
import pytest

from postdeck_pkg.cli import main
from postdeck_pkg.core import PACKAGE_TEMPLATES_DIR
from postdeck_pkg.page import StaticPage
from postdeck_pkg.theme import DARK


@pytest.fixture
def site(temp_dir, mock_content_dir, monkeypatch):
    """A built site inside an isolated working directory."""
    monkeypatch.chdir(temp_dir)
    output_dir = os.path.join(temp_dir, 'public')
    assert main([
        'build',
        '--content', mock_content_dir,
        '--templates', PACKAGE_TEMPLATES_DIR,
        '--output', output_dir,
        '--site-title', 'Field Notes',
    ]) == 0
    return output_dir


class TestCli:
    """Test cases for the CLI entry point."""

    def test_build(self, site):
        assert os.path.exists(os.path.join(site, 'index.html'))
        assert os.path.exists(os.path.join(site, 'blog', 'go-microservices', 'index.html'))

    def test_build_without_subcommand(self, temp_dir, mock_content_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        output_dir = os.path.join(temp_dir, 'site')
        assert main([
            '--content', mock_content_dir,
            '--templates', PACKAGE_TEMPLATES_DIR,
            '--output', output_dir,
        ]) == 0

        page = StaticPage.from_file(os.path.join(output_dir, 'index.html'))
        assert page.visible_titles() == ['Java Performance', 'Lisbon Guide', 'Go Microservices']

    def test_build_passes_client_settings(self, temp_dir, mock_content_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        with open(os.path.join(temp_dir, 'postdeck.yml'), 'w', encoding='utf-8') as f:
            f.write('debounce_ms: 800\ntheme_key: site-theme\n')
        output_dir = os.path.join(temp_dir, 'site')

        assert main(['build', '--content', mock_content_dir, '--templates', PACKAGE_TEMPLATES_DIR,
                     '--output', output_dir]) == 0

        for page_path in ('index.html', os.path.join('blog', 'lisbon-guide', 'index.html')):
            body = StaticPage.from_file(os.path.join(output_dir, page_path)).soup.body
            assert body['data-debounce-ms'] == '800'
            assert body['data-theme-key'] == 'site-theme'

    def test_filter_by_category(self, site, capsys):
        capsys.readouterr()
        assert main(['filter', os.path.join(site, 'index.html'), '--category', 'tech']) == 0
        assert capsys.readouterr().out.splitlines() == ['Java Performance', 'Go Microservices']

    def test_filter_no_results(self, site, capsys):
        capsys.readouterr()
        index = os.path.join(site, 'index.html')
        assert main(['filter', index, '--category', 'travel', '--search', 'xyz-nonexistent']) == 0
        assert capsys.readouterr().out.strip() == 'No posts found.'

    def test_filter_unknown_category_warns(self, site, capsys):
        capsys.readouterr()
        assert main(['filter', os.path.join(site, 'index.html'), '--category', 'food']) == 0
        captured = capsys.readouterr()
        assert "no filter button for category 'food'" in captured.err
        assert captured.out.strip() == 'No posts found.'

    def test_filter_write(self, site):
        index = os.path.join(site, 'index.html')
        assert main(['filter', index, '--search', 'LISBON', '--write']) == 0

        page = StaticPage.from_file(index)
        assert page.visible_titles() == ['Lisbon Guide']

    def test_theme_preference_flow(self, site, temp_dir, capsys):
        prefs = os.path.join(temp_dir, 'prefs.json')
        index = os.path.join(site, 'index.html')
        capsys.readouterr()

        assert main(['theme', '--system', 'dark', '--preferences', prefs]) == 0
        assert capsys.readouterr().out.strip() == 'dark (system)'

        assert main(['theme', '--set', 'light', '--preferences', prefs]) == 0
        assert capsys.readouterr().out.strip() == 'light (stored)'

        assert main(['theme', '--system', 'dark', '--preferences', prefs, '--page', index]) == 0
        assert capsys.readouterr().out.strip() == 'light (stored)'

        assert main(['theme', '--toggle', '--preferences', prefs, '--page', index]) == 0
        assert capsys.readouterr().out.strip() == 'dark (stored)'
        assert StaticPage.from_file(index).theme() == DARK

        assert main(['theme', '--clear', '--preferences', prefs]) == 0
        assert capsys.readouterr().out.strip() == 'light (default)'

    def test_init_creates_starter_project(self, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        assert main(['--init', 'yml']) == 0

        assert os.path.exists(os.path.join(temp_dir, 'postdeck.yml'))
        assert os.path.exists(os.path.join(temp_dir, 'content', 'posts', 'java-performance.md'))
        assert os.path.exists(os.path.join(temp_dir, 'content', 'categories.yml'))

    def test_errors_exit_nonzero(self, temp_dir, monkeypatch, capsys):
        monkeypatch.chdir(temp_dir)
        assert main(['filter', os.path.join(temp_dir, 'missing.html')]) == 1
        assert capsys.readouterr().err.startswith('Error:')
