"""Slider that seeks on click."""

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QMouseEvent
from PySide6.QtWidgets import QSlider, QStyle, QStyleOptionSlider

SEEK_RESOLUTION = 1000


class SeekSlider(QSlider):
    """Horizontal slider that jumps to the click position.

    Emits ``seek_requested`` with a ratio 0.0-1.0 when the user clicks or
    releases the handle; programmatic updates via ``set_ratio`` do not.
    """

    seek_requested = Signal(float)

    def __init__(self, parent=None):  # type: ignore
        super().__init__(Qt.Orientation.Horizontal, parent)
        self.setRange(0, SEEK_RESOLUTION)
        self.sliderReleased.connect(self._emit_seek)

    def set_ratio(self, ratio: float) -> None:
        """Move the handle without emitting a seek (ignored while dragging)."""
        if self.isSliderDown():
            return
        self.blockSignals(True)
        self.setValue(int(max(0.0, min(1.0, ratio)) * SEEK_RESOLUTION))
        self.blockSignals(False)

    def ratio(self) -> float:
        return self.value() / SEEK_RESOLUTION

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        """Handle mouse press - jump to clicked position."""
        if event.button() == Qt.MouseButton.LeftButton:
            opt = QStyleOptionSlider()
            self.initStyleOption(opt)
            groove = self.style().subControlRect(
                QStyle.ComplexControl.CC_Slider, opt, QStyle.SubControl.SC_SliderGroove, self
            )
            if groove.width() > 0:
                ratio = (event.position().x() - groove.x()) / groove.width()
                self.setValue(int(max(0.0, min(1.0, ratio)) * SEEK_RESOLUTION))
                self._emit_seek()

        super().mousePressEvent(event)

    def _emit_seek(self) -> None:
        self.seek_requested.emit(self.ratio())
