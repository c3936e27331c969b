"""
Main NiceGUI application for the graph sketchpad.

Builds one page with the 3D scene, a control panel and a status bar, and
wires them to a Sketchpad session. All graph rules live in the sketchpad
package; this file only lays out widgets and forwards commands.

Keys: v = place node, d = delete selection, m = drag selected node,
l = loop on selected node.
"""

import logging
import os
import sys

from dotenv import load_dotenv
from nicegui import ui

load_dotenv()

from sketchpad.config import load_settings
from sketchpad.interaction.handlers import setup_scene_handlers
from sketchpad.scene_view import create_scene_view
from sketchpad.session import Sketchpad, describe_result

logging.basicConfig(
    level=os.environ.get('SKETCHPAD_LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)


@ui.page('/')
def index():
    settings = load_settings()
    pad = Sketchpad(settings)
    logger.info('Sketchpad page opened')

    with ui.row().classes('w-full no-wrap gap-4'):
        view = create_scene_view(pad)
        setup_scene_handlers(pad, view)

        # --- Control Panel ---
        with ui.card().classes('w-80 gap-3'):
            ui.label('Graph').classes('text-lg')
            ui.label(f'Node radius {settings.node_radius}, edges {settings.edge_color}') \
                .classes('text-xs text-gray-400')

            ui.switch('Directed', value=settings.directed,
                      on_change=lambda e: pad.set_directed(e.value))
            with ui.row().classes('items-center gap-2'):
                ui.label('Arrow size').classes('text-xs text-gray-400')
                ui.number(value=settings.arrow_size, min=0.0, max=2.0, step=0.1,
                          on_change=lambda e: pad.set_arrow_size(e.value or 0.0)).props('dense outlined')

            ui.separator()
            ui.label('Selected node').classes('text-sm')
            ui.color_input(
                'Color', value=settings.node_color,
                on_change=lambda e: pad.set_selected_node_color(e.value),
            )
            label_input = ui.input('Label')
            ui.button('Apply label', on_click=lambda: pad.set_selected_node_label(label_input.value or '')) \
                .props('flat dense')

            ui.separator()
            ui.label('Analysis').classes('text-sm')

            def run(command):
                result = command()
                ui.notify(describe_result(result), position='bottom', timeout=2000, color='info')

            with ui.grid(columns=2).classes('gap-2'):
                ui.button('Components', on_click=lambda: run(pad.run_components)).props('dense')
                ui.button('Bridges', on_click=lambda: run(pad.run_bridges)).props('dense')
                ui.button('Bipartite', on_click=lambda: run(pad.run_bipartite)).props('dense')
                ui.button('Chromatic', on_click=lambda: run(pad.run_chromatic)).props('dense')
            ui.button('Reset highlights', on_click=pad.reset_highlights).props('flat dense')
            ui.button('Clear graph', on_click=pad.clear_graph).props('flat dense color=negative')

    # --- Status Bar ---
    with ui.row().classes('items-center gap-6 text-sm'):
        vertex_label = ui.label()
        edge_label = ui.label()
        degree_label = ui.label()
        degree_label.set_visibility(False)

    def update_counts(_change=None):
        vertex_label.text = f'Vertices: {pad.node_count}'
        edge_label.text = f'Edges: {pad.edge_count}'
        degree = pad.selected_degree()
        if degree is None:
            degree_label.set_visibility(False)
        else:
            degree_label.text = f'Degree: {degree}'

    def update_selection(change):
        if change.kind == 'node':
            degree_label.text = f'Degree: {change.degree}'
            degree_label.set_visibility(True)
            node = pad.store.node(change.element_id)
            if node is not None:
                label_input.value = node.label
        else:
            degree_label.set_visibility(False)

    pad.events.on('graph_changed', update_counts)
    pad.events.on('selection_changed', update_selection)
    update_counts()


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='Graph Sketchpad',
        port=8081,
        reload=not getattr(sys, 'frozen', False),
        dark=True,
    )
