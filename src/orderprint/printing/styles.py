"""Role to font/emphasis mapping shared by every render backend."""

from dataclasses import dataclass
from enum import Enum

from orderprint.printing.layout import LayoutParameters
from orderprint.printing.receipt import LineRole


class FontTier(Enum):
    """Relative font size of a receipt line."""

    NORMAL = "normal"
    ITEM = "item"
    TITLE = "title"


@dataclass(frozen=True)
class LineStyle:
    tier: FontTier = FontTier.NORMAL
    bold: bool = False

    def font_points(self, params: LayoutParameters) -> int:
        """Point size of this style for a resolved layout."""
        return {
            FontTier.NORMAL: params.font_normal,
            FontTier.ITEM: params.font_item,
            FontTier.TITLE: params.font_title,
        }[self.tier]


DEFAULT_STYLE = LineStyle()

ROLE_STYLES = {
    LineRole.ORDER_ID: LineStyle(FontTier.TITLE, bold=True),
    LineRole.TOTAL: LineStyle(FontTier.ITEM, bold=True),
    LineRole.FEE: LineStyle(FontTier.NORMAL),
    LineRole.SEPARATOR: LineStyle(FontTier.NORMAL),
    LineRole.ITEM: LineStyle(FontTier.ITEM),
    LineRole.ITEM_CONTINUATION: LineStyle(FontTier.ITEM),
    LineRole.TABLE_HEADER: LineStyle(FontTier.ITEM, bold=True),
}


def style_for(role: LineRole) -> LineStyle:
    return ROLE_STYLES.get(role, DEFAULT_STYLE)
