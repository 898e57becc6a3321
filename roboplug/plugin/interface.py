"""
Robo Plugin Interface.

Plugin packages reference a method with this signature from their
[tool.robo.operations] table:

    [tool.robo.operations]
    install = "robo_foo.setup.Installer::install"
"""

from collections.abc import Mapping
from typing import Any

from roboplug.host import IOInterface


class RoboPluginInterface:
    """
    Base class for Robo plugin installers.

    Subclasses override install() as a staticmethod or classmethod.
    """

    @staticmethod
    def install(io: IOInterface, extra: Mapping[str, Any]) -> None:
        """
        Called every time the plugin is installed or updated.

        Args:
            io: Host I/O handle
            extra: The [tool.robo] table of the root project
        """
        raise NotImplementedError
