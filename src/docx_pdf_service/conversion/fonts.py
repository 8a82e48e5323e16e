import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

# A font must cover strictly more than this share of a text's code points.
COVERAGE_THRESHOLD = 0.8


@dataclass(frozen=True)
class FontDescriptor:
    name: str
    source_file: str
    description: str
    unicode_ranges: tuple[tuple[int, int], ...]
    word_wrap: str | None = None

    def covers(self, code_point: int) -> bool:
        return any(start <= code_point <= end for start, end in self.unicode_ranges)


# Declaration order is the selection priority.
FONT_CATALOG: tuple[FontDescriptor, ...] = (
    FontDescriptor(
        name="NotoSansSC",
        source_file="NotoSansSC-VariableFont_wght.ttf",
        description="Chinese Simplified",
        unicode_ranges=(
            (0x4E00, 0x9FFF),  # CJK Unified Ideographs
            (0x3400, 0x4DBF),  # Extension A
            (0x20000, 0x2A6DF),  # Extension B
            (0x2A700, 0x2B73F),  # Extension C
            (0x2B740, 0x2B81F),  # Extension D
            (0x2B820, 0x2CEAF),  # Extension E
            (0x2CEB0, 0x2EBEF),  # Extension F
            (0x3000, 0x303F),  # CJK Symbols and Punctuation
            (0xFF00, 0xFFEF),  # Halfwidth and Fullwidth Forms
        ),
        word_wrap="CJK",
    ),
    FontDescriptor(
        name="DejaVuSans",
        source_file="DejaVuSans.ttf",
        description="Latin, Cyrillic, Greek",
        unicode_ranges=(
            (0x0000, 0x007F),  # Basic Latin
            (0x0080, 0x00FF),  # Latin-1 Supplement
            (0x0100, 0x017F),  # Latin Extended-A
            (0x0180, 0x024F),  # Latin Extended-B
            (0x0370, 0x03FF),  # Greek and Coptic
            (0x0400, 0x04FF),  # Cyrillic
            (0x0500, 0x052F),  # Cyrillic Supplement
            (0x1E00, 0x1EFF),  # Latin Extended Additional
            (0x2000, 0x206F),  # General Punctuation
            (0x20A0, 0x20CF),  # Currency Symbols
        ),
    ),
)


@dataclass(frozen=True)
class LoadedFont:
    descriptor: FontDescriptor
    data: bytes

    @property
    def name(self) -> str:
        return self.descriptor.name


class FontManager:
    """Read-only set of fonts available to the PDF renderer.

    Built once at process startup and shared between requests. Selection
    never returns a font that failed to load; ``None`` means the renderer
    should fall back to its built-in font.
    """

    def __init__(self, loaded_fonts: Iterable[LoadedFont] = ()) -> None:
        self._fonts: tuple[LoadedFont, ...] = tuple(loaded_fonts)

    @classmethod
    def from_directory(
        cls,
        fonts_dir: str | Path,
        catalog: Iterable[FontDescriptor] = FONT_CATALOG,
    ) -> "FontManager":
        base = Path(fonts_dir)
        loaded: list[LoadedFont] = []
        for descriptor in catalog:
            font_path = base / descriptor.source_file
            try:
                data = font_path.read_bytes()
            except FileNotFoundError:
                logger.warning("Font not found: %s", font_path)
                continue
            except OSError as e:
                logger.warning("Error loading font %s from %s: %s", descriptor.name, font_path, e)
                continue
            loaded.append(LoadedFont(descriptor=descriptor, data=data))
            logger.info("Loaded font %s (%s)", descriptor.name, descriptor.description)

        if not loaded:
            logger.warning("No custom fonts loaded from %s; the renderer's built-in font will be used", base)
        return cls(loaded)

    @property
    def fonts(self) -> tuple[LoadedFont, ...]:
        return self._fonts

    def list_loaded_fonts(self) -> list[str]:
        return [f.name for f in self._fonts]

    @staticmethod
    def coverage(text: str, font: LoadedFont | FontDescriptor) -> float:
        """Fraction of the code points in ``text`` that ``font`` declares support for."""
        descriptor = font.descriptor if isinstance(font, LoadedFont) else font
        code_points = [ord(ch) for ch in text]
        if not code_points:
            return 0.0
        supported = sum(1 for cp in code_points if descriptor.covers(cp))
        return supported / len(code_points)

    def select_font(self, text: str) -> LoadedFont | None:
        """Pick the first font, in priority order, covering more than 80% of ``text``.

        Falls back to the highest-priority loaded font when none clears the
        threshold, and for empty or whitespace-only text. Returns ``None`` only
        when no fonts are loaded.
        """
        if not self._fonts:
            return None
        if not text.strip():
            return self._fonts[0]

        for font in self._fonts:
            if self.coverage(text, font) > COVERAGE_THRESHOLD:
                return font
        return self._fonts[0]
