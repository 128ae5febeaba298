"""Layout parameter resolution for receipt paper widths.

Turns a paper width in millimetres into the character grid the
receipt composer works on: column counts, item and fee table splits,
margins and font sizes. Known widths (58mm, 80mm) have tuned ratios,
anything else goes through the default branch.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

STANDARD = "standard"
COMPACT = "compact"
MINIMAL = "minimal"

# Font tiers chosen per printer (0 small, 1 medium, 2 large)
FONT_SMALL = 0
FONT_MEDIUM = 1
FONT_LARGE = 2


def _freeze(mapping: Dict) -> Tuple:
    return tuple(sorted(mapping.items()))


@dataclass(frozen=True)
class LayoutConfig:
    """Tunable ratios behind every resolved layout.

    Mappings are stored as sorted tuples so configs stay hashable.
    """

    margin_ratio: float = 0.01
    margin_top_mm: float = 3.0
    margin_bottom_mm: float = 3.0
    char_width_ratios: Tuple[Tuple[int, float], ...] = _freeze({58: 0.42, 80: 0.43})
    default_char_width_ratio: float = 0.40
    # name / qty / price percentages
    table_layouts: Tuple[Tuple[str, Tuple[int, int, int]], ...] = _freeze({
        STANDARD: (65, 15, 20),
        COMPACT: (60, 15, 25),
        MINIMAL: (55, 20, 25),
    })
    fee_split: Tuple[int, int] = (70, 30)
    base_font_sizes: Tuple[Tuple[int, int], ...] = _freeze({58: 11, 80: 12})
    default_font_size: int = 10
    title_font_offset: int = 2
    item_font_offset: int = 1
    normal_font_offset: int = 0
    line_height_mm: float = 4.0
    min_gap: int = 2

    def char_width_ratio(self, paper_width: int) -> float:
        return dict(self.char_width_ratios).get(paper_width, self.default_char_width_ratio)

    def table_split(self, layout_type: str) -> Tuple[int, int, int]:
        return dict(self.table_layouts)[layout_type]

    def base_font_size(self, paper_width: int) -> int:
        return dict(self.base_font_sizes).get(paper_width, self.default_font_size)


@dataclass(frozen=True)
class LayoutParameters:
    """Character grid and page metrics for one paper width."""

    paper_width: int
    font_size: int
    margin_left: float
    margin_right: float
    margin_top: float
    margin_bottom: float
    total_columns: int
    layout_type: str
    name_width: int
    qty_width: int
    price_width: int
    fee_label_width: int
    fee_amount_width: int
    font_base: int
    font_title: int
    font_item: int
    font_normal: int
    text_area_width: float
    line_height: float
    min_gap: int

    @property
    def table_widths(self) -> Tuple[int, int, int]:
        return (self.name_width, self.qty_width, self.price_width)


def table_layout_type(paper_width: int) -> str:
    """Pick the item table split for a paper width."""
    if paper_width >= 80:
        return STANDARD
    if paper_width >= 58:
        return COMPACT
    return MINIMAL


class LayoutResolver:
    """Resolves and memoises LayoutParameters for a LayoutConfig."""

    def __init__(self, config: Optional[LayoutConfig] = None) -> None:
        self.config = config or LayoutConfig()
        self._cache: Dict[Tuple[int, int], LayoutParameters] = {}

    def resolve(self, paper_width: int, font_size: int = FONT_SMALL) -> LayoutParameters:
        """Resolve layout parameters for a paper width.

        Args:
            paper_width: Paper width in mm (58, 80 or anything else)
            font_size: Printer font tier, 0 small, 1 medium, 2 large

        Returns:
            Layout parameters, identical for identical inputs
        """
        key = (int(paper_width), int(font_size))
        params = self._cache.get(key)
        if params is None:
            params = self._compute(*key)
            self._cache[key] = params
            logger.debug(
                f"Resolved {paper_width}mm layout: {params.total_columns} columns "
                f"({params.layout_type})"
            )
        return params

    def _compute(self, paper_width: int, font_size: int) -> LayoutParameters:
        cfg = self.config
        font_size = max(FONT_SMALL, min(FONT_LARGE, font_size))

        margin_side = paper_width * cfg.margin_ratio
        total_columns = int(paper_width * cfg.char_width_ratio(paper_width))
        if font_size == FONT_LARGE:
            # Double-width characters take two cells each
            total_columns //= 2
        total_columns = max(total_columns, 1)

        layout_type = table_layout_type(paper_width)
        name_pct, qty_pct, _ = cfg.table_split(layout_type)
        name_width = total_columns * name_pct // 100
        qty_width = total_columns * qty_pct // 100
        price_width = total_columns - name_width - qty_width

        label_pct, _ = cfg.fee_split
        fee_label_width = total_columns * label_pct // 100
        fee_amount_width = total_columns - fee_label_width

        base = cfg.base_font_size(paper_width) + font_size

        return LayoutParameters(
            paper_width=paper_width,
            font_size=font_size,
            margin_left=margin_side,
            margin_right=margin_side,
            margin_top=cfg.margin_top_mm,
            margin_bottom=cfg.margin_bottom_mm,
            total_columns=total_columns,
            layout_type=layout_type,
            name_width=name_width,
            qty_width=qty_width,
            price_width=price_width,
            fee_label_width=fee_label_width,
            fee_amount_width=fee_amount_width,
            font_base=base,
            font_title=base + cfg.title_font_offset,
            font_item=base + cfg.item_font_offset,
            font_normal=base + cfg.normal_font_offset,
            text_area_width=paper_width - 2 * margin_side,
            line_height=cfg.line_height_mm,
            min_gap=cfg.min_gap,
        )


_default_resolver = LayoutResolver()


def resolve_layout(
    paper_width: int,
    font_size: int = FONT_SMALL,
    config: Optional[LayoutConfig] = None,
) -> LayoutParameters:
    """Resolve layout parameters with the default or a given config."""
    if config is None:
        return _default_resolver.resolve(paper_width, font_size)
    return LayoutResolver(config).resolve(paper_width, font_size)
