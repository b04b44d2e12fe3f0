import tkinter as tk

from ui.main_window import MainWindow


def main():
    root = tk.Tk()
    app = MainWindow(root)
    app.load_entities()
    root.mainloop()


if __name__ == "__main__":
    main()
