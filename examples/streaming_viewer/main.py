# examples/streaming_viewer/main.py

import sys
import os
import json
import logging
import logging.config
import cProfile
import pstats
import io

import pygame
import pygame_gui

# To import from the repository root, we add it to the Python path.
# This is necessary because 'examples' is not in the same package as 'terrain_generator'.
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from terrain_generator import ChunkStreamer, ChunkGenerationError, resolve_settings
from renderer import ChunkSurfaceRenderer
from camera import Camera

VIEWER_DIR = os.path.dirname(os.path.abspath(__file__))

# --- UI Constants ---
UI_PANEL_WIDTH = 300
UI_PANEL_HEIGHT = 190
UI_PADDING = 10
BACKGROUND_COLOR = (10, 10, 20)


class Application:
    """A top-down viewer that streams terrain chunks around a panning camera."""

    def __init__(self):
        self._setup_logging()
        self.logger.info("Application starting.")

        self.config = self._load_config()
        self._setup_pygame()

        self.frame_count = 0
        self.last_mouse_world_pos = (None, None)

        # --- Dependency Injection ---
        world_params = resolve_settings(self.config.get('world_generation_parameters', {}), logger=self.logger)
        self.chunk_renderer = ChunkSurfaceRenderer(
            chunk_size=world_params['chunk_size'],
            logger=self.logger
        )
        self.streamer = ChunkStreamer(
            settings=world_params,
            logger=self.logger,
            on_dispose=self.chunk_renderer.release,
        )
        self.camera = Camera(self.config)

        self._setup_ui()

        # --- Profiling Setup ---
        self.profiler = None
        if self.config.get('profiling', {}).get('enabled', False):
            self.profiler = cProfile.Profile()
            self.logger.info("Profiling is ENABLED.")
        else:
            self.logger.info("Profiling is DISABLED.")

        self.is_running = True

    def _setup_logging(self):
        """Initializes the logging system from a config file."""
        log_config_path = os.path.join(VIEWER_DIR, 'logging_config.json')
        log_dir = 'logs'

        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        with open(log_config_path, 'rt') as f:
            log_config = json.load(f)

        log_config['handlers']['file']['filename'] = os.path.join(log_dir, 'streaming_viewer.log')

        logging.config.dictConfig(log_config)
        self.logger = logging.getLogger(__name__)

    def _load_config(self) -> dict:
        """Loads viewer and world parameters from the config file."""
        config_path = os.path.join(VIEWER_DIR, 'config.json')
        self.logger.info(f"Loading configuration from {config_path}")
        try:
            with open(config_path, 'r') as f:
                return json.load(f)
        except FileNotFoundError:
            self.logger.critical(f"Configuration file not found at {config_path}. Exiting.")
            sys.exit(1)
        except json.JSONDecodeError:
            self.logger.critical(f"Error decoding JSON from {config_path}. Exiting.")
            sys.exit(1)

    def _setup_pygame(self):
        """Initializes Pygame and the display window."""
        pygame.init()
        display_config = self.config['display']
        self.screen_width = display_config['screen_width']
        self.screen_height = display_config['screen_height']

        self.logger.info(f"Initializing display in Windowed mode ({self.screen_width}x{self.screen_height}).")
        self.screen = pygame.display.set_mode((self.screen_width, self.screen_height))
        pygame.display.set_caption("Terrain Chunk Streamer")
        self.clock = pygame.time.Clock()
        self.tick_rate = display_config['clock_tick_rate']
        self.logger.info("Pygame initialized successfully.")

    def _setup_ui(self):
        """Creates the diagnostics panel and the hover tooltip."""
        self.ui_manager = pygame_gui.UIManager((self.screen_width, self.screen_height))

        self.info_box = pygame_gui.elements.UITextBox(
            relative_rect=pygame.Rect(UI_PADDING, UI_PADDING, UI_PANEL_WIDTH, UI_PANEL_HEIGHT),
            html_text="",
            manager=self.ui_manager
        )
        self.tooltip = pygame_gui.elements.UITextBox(
            relative_rect=pygame.Rect(0, 0, 250, -1),
            html_text="",
            manager=self.ui_manager,
            visible=False
        )

    def run(self):
        """The main application loop."""
        self.logger.info("Entering main loop.")
        if self.profiler:
            self.profiler.enable()

        try:
            while self.is_running:
                time_delta = self.clock.tick(self.tick_rate) / 1000.0

                self._handle_events()
                self._update()

                self.screen.fill(BACKGROUND_COLOR)
                rendered = self.chunk_renderer.draw(self.screen, self.camera, self.streamer.visible_chunks())
                pygame.display.set_caption(
                    f"Terrain Chunk Streamer | Rendering {rendered} chunks | Zoom: {self.camera.zoom:.2f}"
                )

                self.ui_manager.update(time_delta)
                self.ui_manager.draw_ui(self.screen)

                pygame.display.flip()
                self.frame_count += 1

        except ChunkGenerationError as e:
            self.logger.critical(f"Terrain generation failed at chunk {tuple(e.coord)}.", exc_info=True)
        except Exception:
            self.logger.critical("An unhandled exception occurred!", exc_info=True)
        finally:
            if self.profiler:
                self.profiler.disable()
                self._report_profiling_results()

            self.streamer.dispose()
            self.logger.info("Exiting application.")
            pygame.quit()
            sys.exit()

    def _handle_events(self):
        """Processes user input and other events."""
        for event in pygame.event.get():
            self.ui_manager.process_events(event)

            if event.type == pygame.QUIT:
                self.is_running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                self.logger.info("Event: ESC key pressed. Exiting.")
                self.is_running = False
            elif event.type == pygame.MOUSEWHEEL:
                if event.y > 0:
                    self.camera.zoom_in()
                elif event.y < 0:
                    self.camera.zoom_out()

        keys = pygame.key.get_pressed()
        pan_speed = self.config['camera']['pan_speed_pixels']
        if keys[pygame.K_w]:
            self.camera.pan(0, -pan_speed)
        if keys[pygame.K_s]:
            self.camera.pan(0, pan_speed)
        if keys[pygame.K_a]:
            self.camera.pan(-pan_speed, 0)
        if keys[pygame.K_d]:
            self.camera.pan(pan_speed, 0)

    def _update(self):
        """Streams chunks around the camera and refreshes the UI text."""
        if self.streamer.update(self.camera.viewpoint):
            self._update_info_box()
        self._update_tooltip()

    def _update_info_box(self):
        stats = self.streamer.diagnostics()
        self.info_box.set_text(
            f"<b>Chunk</b> {stats['center']}<br>"
            f"Live: {stats['live']} (visible {stats['visible']}, hidden {stats['hidden']})<br>"
            f"Pending removal: {stats['pending_removal']}<br>"
            f"Created: {stats['created']} / Disposed: {stats['disposed']}<br>"
            f"Height cache: {stats['cache_size']}/{stats['cache_capacity']} "
            f"({stats['cache_hits']} hits, {stats['cache_misses']} misses)"
        )

    def _update_tooltip(self):
        """Shows the height and biome under the mouse cursor."""
        mouse_pos = pygame.mouse.get_pos()
        world_x, world_z = self.camera.screen_to_world(*mouse_pos)
        world_x, world_z = int(world_x), int(world_z)

        if (world_x, world_z) == self.last_mouse_world_pos:
            return
        self.last_mouse_world_pos = (world_x, world_z)

        sample = self.streamer.sampler.biome_at(world_x, world_z)
        height = self.streamer.height_at(world_x, world_z)
        self.tooltip.set_text(
            f"<b>{sample.biome.name.replace('_', ' ').title()}</b><br>"
            f"Position: ({world_x}, {world_z})<br>"
            f"Height: {height:.1f}<br>"
            f"Moisture: {sample.moisture:.2f}<br>"
            f"Temperature: {sample.temperature:.2f}"
        )
        self.tooltip.set_position((mouse_pos[0] + 15, mouse_pos[1] + 15))
        self.tooltip.show()

    def _report_profiling_results(self):
        """Logs the top functions by cumulative time."""
        stream = io.StringIO()
        stats = pstats.Stats(self.profiler, stream=stream).sort_stats('cumulative')
        stats.print_stats(self.config['profiling'].get('report_top_n', 25))
        self.logger.info(f"Profiling results:\n{stream.getvalue()}")


if __name__ == '__main__':
    app = Application()
    app.run()
