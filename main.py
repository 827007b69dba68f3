from PyQt6.QtWidgets import (
    QApplication,
    QLabel,
    QRadioButton,
    QButtonGroup,
    QLineEdit,
    QGridLayout,
    QPushButton,
    QWidget,
)
from PyQt6.QtGui import QFont, QIntValidator, QDoubleValidator
from PyQt6.QtCore import QThread, pyqtSignal
import sys
import threading
from errors import ConfigurationError, PSOError
from runner import DEFAULT_VALUES, INT_FIELDS, run_with_args, values_from_text

# (parameter, label) per form column
FORM_COLUMNS = [
    [("sigma", "Noise sigma")],
    [
        ("dim", "Dimensions"),
        ("swarm_size", "Swarm size"),
        ("total_iterations", "Iterations"),
        ("neigh_size", "Neighborhood size"),
        ("seed", "Seed (empty: clock)"),
    ],
    [
        ("min_init", "Min init"),
        ("max_init", "Max init"),
        ("max_velocity", "Max velocity"),
        ("inertia", "Inertia"),
        ("p_weight", "Personal weight"),
        ("n_weight", "Neighbor weight"),
    ],
]


class OptimizationThread(QThread):
    finished = pyqtSignal(object)
    failed = pyqtSignal(str)
    progress = pyqtSignal(int, float)

    def __init__(self, values):
        super().__init__()
        self.values = values
        self.cancel_event = threading.Event()

    def run(self):
        try:
            result = run_with_args(
                self.values,
                cancel_event=self.cancel_event,
                on_iteration=self.progress.emit,
            )
        except (PSOError, OSError) as exc:
            self.failed.emit(str(exc))
            return
        self.finished.emit(result)


class InterfaceGUI(QWidget):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Particle Swarm Optimization")
        self.setMinimumSize(600, 400)
        self.setFont(QFont("JetBrainsMono Nerd Font", 10))

        self.layout = QGridLayout()
        self.layout.setHorizontalSpacing(40)  # distance between columns
        self.setLayout(self.layout)
        self.row_counts = [0] * len(FORM_COLUMNS)
        self.fields = {}
        self.optim_thread = None

        self.fitness_mode = QButtonGroup(self)
        self.place_widget(0, QLabel("Fitness"))
        for mode in ("Exact", "Noisy"):
            btn = QRadioButton(mode)
            btn.setChecked(mode == "Exact")
            self.fitness_mode.addButton(btn)
            self.place_widget(0, btn)

        for column, entries in enumerate(FORM_COLUMNS):
            for name, label in entries:
                self.fields[name] = self.labeled_entry(column, name, label)

        self.status = QLabel("Idle")
        self.place_widget(0, self.status)

        self.run_button = QPushButton("Run Optimization")
        self.run_button.clicked.connect(self.run_optimization)
        self.stop_button = QPushButton("Stop")
        self.stop_button.setEnabled(False)
        self.stop_button.clicked.connect(self.stop_optimization)
        self.place_widget(2, self.run_button)
        self.place_widget(2, self.stop_button)

    def place_widget(self, column, widget):
        self.layout.addWidget(widget, self.row_counts[column], column)
        self.row_counts[column] += 1

    def labeled_entry(self, column, name, label):
        self.place_widget(column, QLabel(label))
        default = DEFAULT_VALUES[name]
        field = QLineEdit("" if default is None else str(default))
        if name in INT_FIELDS or name == "seed":
            field.setValidator(QIntValidator())
        else:
            validator = QDoubleValidator()
            validator.setNotation(QDoubleValidator.Notation.StandardNotation)
            field.setValidator(validator)
        self.place_widget(column, field)
        return field

    def run_optimization(self):
        try:
            values = values_from_text({name: field.text() for name, field in self.fields.items()})
        except ConfigurationError as exc:
            self.status.setText(str(exc))
            return
        values["noisy"] = self.fitness_mode.checkedButton().text() == "Noisy"

        self.run_button.setEnabled(False)
        self.stop_button.setEnabled(True)
        self.status.setText("Running...")

        self.optim_thread = OptimizationThread(values)
        self.optim_thread.progress.connect(self.optimization_progress)
        self.optim_thread.finished.connect(self.optimization_done)
        self.optim_thread.failed.connect(self.optimization_failed)
        self.optim_thread.start()

    def stop_optimization(self):
        if self.optim_thread is not None:
            self.optim_thread.cancel_event.set()

    def optimization_progress(self, iteration, fitness):
        self.status.setText(f"Iteration {iteration} fitness: {fitness:.4f}")

    def optimization_done(self, result):
        self.reset_buttons()
        self.status.setText(
            f"Fitness: {result['best_fitness']:.4f}\nSaved to {result['log_folder']}"
        )

    def optimization_failed(self, message):
        self.reset_buttons()
        self.status.setText(message)

    def reset_buttons(self):
        self.run_button.setEnabled(True)
        self.stop_button.setEnabled(False)


if __name__ == "__main__":
    app = QApplication(sys.argv)
    window = InterfaceGUI()
    window.show()
    sys.exit(app.exec())
