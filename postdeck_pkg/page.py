"""
Headless model of a generated page.

Reads post cards and filter buttons out of the static markup and writes
filter visibility and theme visuals back into it, the same attributes the
browser script touches.
"""

from typing import List

from bs4 import BeautifulSoup

from .filtering import ALL_CATEGORIES, FilterResult, PostCard
from .theme import DARK, LIGHT, THEME_ICONS

CARD_SELECTOR = '.post-card'
FILTER_BUTTON_SELECTOR = '.filter-btn'
POSTS_GRID_ID = 'posts-grid'
NO_RESULTS_ID = 'no-results'
THEME_TOGGLE_ID = 'theme-toggle'
LIGHT_HIGHLIGHT_ID = 'highlight-theme-light'
DARK_HIGHLIGHT_ID = 'highlight-theme-dark'


def _set_display(element, value):
    element['style'] = f'display: {value};'


def _toggle_class(element, name, on):
    classes = [c for c in element.get('class', []) if c != name]
    if on:
        classes.append(name)
    if classes:
        element['class'] = classes
    elif 'class' in element.attrs:
        del element['class']


class StaticPage:
    """A parsed HTML page exposing the post-card markup contract."""

    def __init__(self, html: str):
        self.soup = BeautifulSoup(html, 'html.parser')
        self._card_elements = self.soup.select(CARD_SELECTOR)

    @classmethod
    def from_file(cls, path: str) -> 'StaticPage':
        with open(path, 'r', encoding='utf-8') as f:
            return cls(f.read())

    def save(self, path: str) -> None:
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.render())

    def render(self) -> str:
        return str(self.soup)

    def cards(self) -> List[PostCard]:
        """Card records in source order."""
        return [
            PostCard(
                category=element.get('data-category', ''),
                title=element.get('data-title', ''),
                content_snippet=element.get('data-content', ''),
                text=element.get_text(' ', strip=True),
            )
            for element in self._card_elements
        ]

    def filter_categories(self) -> List[str]:
        return [button.get('data-category', '') for button in self.soup.select(FILTER_BUTTON_SELECTOR)]

    def orphan_categories(self) -> List[str]:
        """Card categories no filter button can select."""
        buttons = set(self.filter_categories())
        orphans = []
        for card in self.cards():
            if card.category not in buttons and card.category not in orphans:
                orphans.append(card.category)
        return orphans

    def apply_filter(self, result: FilterResult) -> None:
        for element, shown in zip(self._card_elements, result.flags):
            _set_display(element, 'block' if shown else 'none')

        no_results = self.soup.find(id=NO_RESULTS_ID)
        if no_results is not None:
            _set_display(no_results, 'block' if result.show_empty_state else 'none')

        grid = self.soup.find(id=POSTS_GRID_ID)
        if grid is not None:
            _set_display(grid, 'grid' if result.show_grid else 'none')

    def set_active_category(self, category: str) -> None:
        for button in self.soup.select(FILTER_BUTTON_SELECTOR):
            _toggle_class(button, 'active', button.get('data-category') == category)

    def active_category(self) -> str:
        for button in self.soup.select(FILTER_BUTTON_SELECTOR):
            if 'active' in button.get('class', []):
                return button.get('data-category', ALL_CATEGORIES)
        return ALL_CATEGORIES

    def visible_titles(self) -> List[str]:
        """Titles of cards not hidden by an inline ``display: none``."""
        return [
            element.get('data-title', '')
            for element in self._card_elements
            if 'display: none' not in element.get('style', '')
        ]

    def apply_theme(self, theme: str) -> None:
        root = self.soup.find('html')
        if root is not None:
            _toggle_class(root, 'dark', theme == DARK)

        light_sheet = self.soup.find(id=LIGHT_HIGHLIGHT_ID)
        dark_sheet = self.soup.find(id=DARK_HIGHLIGHT_ID)
        if light_sheet is not None and dark_sheet is not None:
            enabled, disabled = (dark_sheet, light_sheet) if theme == DARK else (light_sheet, dark_sheet)
            disabled['disabled'] = ''
            if 'disabled' in enabled.attrs:
                del enabled['disabled']

        toggle = self.soup.find(id=THEME_TOGGLE_ID)
        if toggle is not None:
            icon = toggle.select_one('.theme-icon')
            if icon is not None:
                icon.string = THEME_ICONS[theme]

    def theme(self) -> str:
        root = self.soup.find('html')
        if root is not None and 'dark' in root.get('class', []):
            return DARK
        return LIGHT
