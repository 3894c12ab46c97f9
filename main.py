import sys
import argparse
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from PyQt6.QtWidgets import *
from PyQt6.QtCore import Qt, pyqtSignal, pyqtSlot, QObject
from PyQt6.QtGui import QFont

from matplotlib.figure import Figure
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
import qdarkstyle
from qdarkstyle.light.palette import LightPalette

import config
from fetcher import Category, NumberFetcher
from logging_config import QtLogHandler, setup_logging
from store import WindowStore


log = logging.getLogger("avgcalc.ui")


def endpoint_for(category):
    return config.DISPLAY_ENDPOINT.format(key=Category.from_key(category).value)


@dataclass(frozen=True)
class DisplayResult:
    category: Category
    previous_window: list = field(default_factory=list)
    current_window: list = field(default_factory=list)
    numbers: list = field(default_factory=list)
    average: str = "0.00"

    @property
    def endpoint(self):
        return endpoint_for(self.category)

    def as_dict(self):
        return {
            "windowPrevState": list(self.previous_window),
            "windowCurrState": list(self.current_window),
            "numbers": list(self.numbers),
            "avg": self.average,
        }


EVEN_2_TO_20 = (2, 4, 6, 8, 10, 12, 14, 16, 18, 20)

# case -> (Even window is reset to, previous, current, fetched, average shown)
TEST_CASES = {
    1: ((), (), (2, 4, 6, 8), (2, 4, 6, 8), "5.00"),
    2: (EVEN_2_TO_20, EVEN_2_TO_20,
        (12, 14, 16, 18, 20, 22, 24, 26, 28, 30),
        (10, 12, 14, 16, 18, 20, 22, 24, 26, 28, 30),
        "23.40"),
}


def format_numbers(values):
    return f"[{', '.join(str(v) for v in values)}]"


class AverageController(QObject):
    result_ready = pyqtSignal(object)
    busy_changed = pyqtSignal(bool)
    error = pyqtSignal(str)
    category_changed = pyqtSignal(object)

    # worker thread -> GUI thread
    _fetched = pyqtSignal(object, object)
    _failed = pyqtSignal(str)

    def __init__(self, fetcher=None, store=None, category=config.DEFAULT_CATEGORY):
        super().__init__()
        self.fetcher = fetcher or NumberFetcher()
        self.store = store or WindowStore(list(Category))
        self.category = Category.from_key(category)
        self.busy = False
        self.result = None
        self.worker = None

        self._fetched.connect(self._on_fetched)
        self._failed.connect(self._on_failed)

    def _set_busy(self, busy):
        if busy != self.busy:
            self.busy = busy
            self.busy_changed.emit(busy)

    def select_category(self, category):
        self.category = Category.from_key(category)
        log.info("Category: %s", self.category.label)
        self.category_changed.emit(self.category)

    def trigger_fetch(self):
        if self.busy:
            log.debug("Fetch already in flight, ignoring")
            return False

        self._set_busy(True)
        category = self.category
        log.info("Fetching %s numbers from %s", category.label, self.fetcher.url_for(category))
        self.worker = threading.Thread(target=self._fetch_worker, args=(category,), daemon=True)
        self.worker.start()
        return True

    def _fetch_worker(self, category):
        try:
            numbers = self.fetcher.fetch(category)
        except Exception as e:
            log.exception("Fetch worker crashed")
            self._failed.emit(f"Error: {e}")
            return
        self._fetched.emit(category, numbers)

    @pyqtSlot(object, object)
    def _on_fetched(self, category, numbers):
        try:
            self.apply_numbers(category, numbers)
        except Exception as e:
            log.exception("Could not apply fetched numbers")
            self.error.emit(f"Error: {e}")
        finally:
            self._set_busy(False)

    @pyqtSlot(str)
    def _on_failed(self, message):
        self.error.emit(message)
        self._set_busy(False)

    def apply_numbers(self, category, numbers):
        category = Category.from_key(category)
        numbers = list(numbers)
        previous, current = self.store.update(category, numbers)
        result = DisplayResult(
            category=category,
            previous_window=previous,
            current_window=current,
            numbers=numbers,
            average=self.store.average(category),
        )
        log.info("%s window %s, avg %s", category.label, format_numbers(current), result.average)
        self._publish(result)
        return result

    def run_test_case(self, number):
        if number not in TEST_CASES:
            raise ValueError(f"no test case {number!r}")
        window, previous, current, numbers, average = TEST_CASES[number]
        self.store.reset(Category.EVEN, window)
        result = DisplayResult(
            category=Category.EVEN,
            previous_window=list(previous),
            current_window=list(current),
            numbers=list(numbers),
            average=average,
        )
        log.info("Test case %d loaded", number)
        self._publish(result)
        return result

    def _publish(self, result):
        self.result = result
        self.result_ready.emit(result)


def load_stylesheet(theme):
    if theme == "light":
        return qdarkstyle.load_stylesheet(qt_api="pyqt6", palette=LightPalette)
    return qdarkstyle.load_stylesheet(qt_api="pyqt6")


class MainWindow(QMainWindow):
    def __init__(self, controller, theme=config.DEFAULT_THEME, log_handler=None):
        super().__init__()
        self.controller = controller
        self.theme = theme
        self.setWindowTitle(config.WINDOW_TITLE)
        self.resize(*config.WINDOW_GEOMETRY)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QHBoxLayout(central)

        left = QGroupBox("Number Type")
        left.setMaximumWidth(380)
        vbox = QVBoxLayout(left)

        row = QHBoxLayout()
        self.category_group = QButtonGroup(self)
        self.category_group.setExclusive(True)
        self.category_buttons = {}
        for category in Category:
            button = QPushButton(category.label)
            button.setCheckable(True)
            button.setChecked(category == controller.category)
            button.clicked.connect(lambda _checked, c=category: self.controller.select_category(c))
            self.category_group.addButton(button)
            self.category_buttons[category] = button
            row.addWidget(button)
        vbox.addLayout(row)

        self.fetch_button = QPushButton("Fetch Numbers")
        self.fetch_button.clicked.connect(self.on_fetch)
        vbox.addWidget(self.fetch_button)

        row = QHBoxLayout()
        self.test1_button = QPushButton("Test Case 1")
        self.test1_button.clicked.connect(lambda: self.controller.run_test_case(1))
        self.test2_button = QPushButton("Test Case 2")
        self.test2_button.clicked.connect(lambda: self.controller.run_test_case(2))
        row.addWidget(self.test1_button)
        row.addWidget(self.test2_button)
        vbox.addLayout(row)

        self.error_label = QLabel("")
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet("color: red;")
        self.error_label.hide()
        vbox.addWidget(self.error_label)

        self.log = QTextEdit()
        self.log.setFont(QFont("Consolas", 10))
        self.log.setReadOnly(True)
        vbox.addWidget(self.log)

        right = QVBoxLayout()

        form = QFormLayout()
        self.endpoint_label = QLabel("")
        self.endpoint_label.setFont(QFont("Consolas", 10))
        self.endpoint_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        self.previous_label = QLabel("[]")
        self.current_label = QLabel("[]")
        self.numbers_label = QLabel("[]")
        for label in (self.previous_label, self.current_label, self.numbers_label):
            label.setFont(QFont("Consolas", 10))
            label.setWordWrap(True)
        self.average_label = QLabel("")
        self.average_label.setStyleSheet("font-size: 22px;")
        form.addRow("API Endpoint", self.endpoint_label)
        form.addRow("Previous Window", self.previous_label)
        form.addRow("Current Window", self.current_label)
        form.addRow("Fetched Numbers", self.numbers_label)
        form.addRow("Average", self.average_label)
        right.addLayout(form)

        face, axes = ("#1e1e1e", "#2b2b2b") if theme == "dark" else ("white", "#f4f4f4")
        self.text_color = "white" if theme == "dark" else "black"
        self.figure = Figure(facecolor=face)
        self.canvas = FigureCanvas(self.figure)
        self.ax = self.figure.add_subplot(111)
        self.ax.set_facecolor(axes)
        right.addWidget(self.canvas)

        layout.addWidget(left)
        layout.addLayout(right)

        controller.result_ready.connect(self.show_result)
        controller.busy_changed.connect(self.set_busy)
        controller.error.connect(self.show_error)
        controller.category_changed.connect(self.on_category_changed)
        if log_handler is not None:
            log_handler.signals.log.connect(self.add_log)

    def add_log(self, text, color="white"):
        ts = datetime.now().strftime("%H:%M:%S")
        self.log.append(f'<span style="color:{color};">[{ts}] {text}</span>')
        self.log.verticalScrollBar().setValue(self.log.verticalScrollBar().maximum())

    def on_fetch(self):
        self.error_label.clear()
        self.error_label.hide()
        self.controller.trigger_fetch()

    def on_category_changed(self, category):
        self.category_buttons[category].setChecked(True)
        if self.controller.result is not None:
            self.endpoint_label.setText(endpoint_for(category))

    def set_busy(self, busy):
        self.fetch_button.setEnabled(not busy)
        self.fetch_button.setText("Processing..." if busy else "Fetch Numbers")

    def show_error(self, message):
        self.error_label.setText(message)
        self.error_label.show()

    def show_result(self, result):
        # follows the selected category, not the one the result came from
        self.endpoint_label.setText(endpoint_for(self.controller.category))
        self.previous_label.setText(format_numbers(result.previous_window))
        self.current_label.setText(format_numbers(result.current_window))
        self.numbers_label.setText(format_numbers(result.numbers))
        self.average_label.setText(result.average)
        self.plot_window(result)

    def plot_window(self, result):
        values = result.current_window
        self.ax.clear()
        if values:
            self.ax.bar(range(len(values)), values, color="#3b82f6")
            self.ax.axhline(float(result.average), color="orange", linewidth=2,
                            label=f"avg {result.average}")
            self.ax.set_xticks(range(len(values)))
            self.ax.legend(fontsize=9)
        self.ax.set_title(f"{result.category.label} window", color=self.text_color)
        self.ax.tick_params(colors=self.text_color)
        self.ax.grid(True, alpha=0.3)
        self.canvas.draw()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Sliding-window average calculator")
    parser.add_argument("--base-url", default=config.TEST_SERVER_BASE_URL)
    parser.add_argument("--timeout-ms", type=int, default=config.FETCH_TIMEOUT_MS)
    parser.add_argument("--theme", choices=config.THEMES, default=config.DEFAULT_THEME)
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--debug", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logger = setup_logging(logging.DEBUG if args.debug else logging.INFO, args.log_file)

    app = QApplication(sys.argv[:1])
    app.setStyleSheet(load_stylesheet(args.theme))

    handler = QtLogHandler()
    logger.addHandler(handler)

    with NumberFetcher(args.base_url, args.timeout_ms / 1000) as fetcher:
        controller = AverageController(fetcher)
        window = MainWindow(controller, theme=args.theme, log_handler=handler)
        window.show()
        code = app.exec()

    return code


if __name__ == "__main__":
    sys.exit(main())
