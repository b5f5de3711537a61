"""
Interactive wave tank window.

Usage:
    python examples/gui_simulator.py [--seed N] [--verbose]

Opens a Tkinter window with an embedded Matplotlib image of the wave field.
Resizing the window rebuilds the tank; click (and hold) to drop pulses;
press R to draw new walls. A pulse drops on its own every few seconds.
"""

import argparse
import logging
import sys
import os
import tkinter as tk
import numpy as np
import matplotlib
# Use TkAgg backend
matplotlib.use('TkAgg')
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure

# Ensure the package is importable when running this script from a checkout
src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from wavetank import config
from wavetank.simulation import Simulation


class SimulatorGUI:
    def __init__(self, master, seed=None, width=800, height=600):
        self.master = master
        master.title('wavetank: 2D FDTD')
        master.geometry('%dx%d' % (width, height))

        self._build_canvas()

        self.sim = Simulation(sink=self.show_frame, scheduler=master,
                              rng=np.random.default_rng(seed))
        self._bind_events()
        self.sim.start(config.FRAME_INTERVAL_MS)

    def _build_canvas(self):
        # Axes fill the whole figure; one image pixel per grid cell
        self.fig = Figure(figsize=(4, 3), dpi=100)
        self.ax = self.fig.add_axes([0, 0, 1, 1])
        self.ax.set_axis_off()
        self.im = None
        self.canvas = FigureCanvasTkAgg(self.fig, master=self.master)
        self.widget = self.canvas.get_tk_widget()
        self.widget.pack(side=tk.TOP, fill=tk.BOTH, expand=1)

    def _bind_events(self):
        self.widget.bind('<Configure>', self.on_resize, add='+')
        self.widget.bind('<ButtonPress-1>', self.on_press)
        self.master.bind('<ButtonRelease-1>', self.on_release)
        self.master.bind('<KeyPress-r>', self.on_regenerate)
        self.master.bind('<KeyPress-R>', self.on_regenerate)
        self.master.protocol('WM_DELETE_WINDOW', self.on_close)

    def on_resize(self, event):
        self.sim.resize(event.width, event.height)

    def on_press(self, event):
        self.sim.pointer_down(event.x, event.y)

    def on_release(self, event=None):
        self.sim.pointer_up()

    def on_regenerate(self, event=None):
        self.sim.regenerate_obstacles()

    def on_close(self):
        self.sim.teardown()
        self.master.destroy()

    def show_frame(self, raster):
        ny, nx = raster.shape[:2]
        if self.im is None or self.im.get_array().shape[:2] != (ny, nx):
            self.ax.clear()
            self.ax.set_axis_off()
            self.im = self.ax.imshow(raster, interpolation='nearest', aspect='auto')
        else:
            self.im.set_data(raster)
        self.canvas.draw_idle()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Interactive 2D wave tank')
    parser.add_argument('--seed', type=int, default=None, help='seed for walls and random pulses')
    parser.add_argument('--width', type=int, default=800, help='initial window width (px)')
    parser.add_argument('--height', type=int, default=600, help='initial window height (px)')
    parser.add_argument('--verbose', action='store_true', help='log debug messages')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    root = tk.Tk()
    app = SimulatorGUI(root, seed=args.seed, width=args.width, height=args.height)
    root.mainloop()


if __name__ == '__main__':
    main()
