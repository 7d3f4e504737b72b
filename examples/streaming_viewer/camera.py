# examples/streaming_viewer/camera.py

class Camera:
    """
    A top-down camera over the terrain's XZ plane.
    (x, z) is the world position at the centre of the screen; zoom is in
    screen pixels per world unit.
    """

    def __init__(self, config: dict):
        self.screen_width = config['display']['screen_width']
        self.screen_height = config['display']['screen_height']

        camera_config = config['camera']
        self.x, self.z = camera_config.get('start_position', (0.0, 0.0))
        self.zoom = camera_config.get('initial_zoom', 0.25)

        self.zoom_speed = camera_config['zoom_speed']
        self.max_zoom = camera_config['max_zoom']
        self.min_zoom = camera_config['min_zoom']

        self.zoom_changed = True

    @property
    def viewpoint(self) -> tuple[float, float, float]:
        """The camera's world position as handed to ChunkStreamer.update()."""
        return self.x, 0.0, self.z

    def world_to_screen(self, world_x, world_z):
        screen_x = (world_x - self.x) * self.zoom + self.screen_width / 2
        screen_y = (world_z - self.z) * self.zoom + self.screen_height / 2
        return int(screen_x), int(screen_y)

    def screen_to_world(self, screen_x, screen_y):
        world_x = (screen_x - self.screen_width / 2) / self.zoom + self.x
        world_z = (screen_y - self.screen_height / 2) / self.zoom + self.z
        return world_x, world_z

    def pan(self, dx, dy):
        self.x += dx / self.zoom
        self.z += dy / self.zoom

    def zoom_in(self):
        old_zoom = self.zoom
        self.zoom = min(self.max_zoom, self.zoom * (1 + self.zoom_speed))
        if self.zoom != old_zoom:
            self.zoom_changed = True

    def zoom_out(self):
        old_zoom = self.zoom
        self.zoom = max(self.min_zoom, self.zoom * (1 - self.zoom_speed))
        if self.zoom != old_zoom:
            self.zoom_changed = True
