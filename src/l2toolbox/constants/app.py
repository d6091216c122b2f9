"""
Constants for application metadata.
"""

from typing import Final

class AppConstants:
    """Defines application metadata."""
    APP_NAME: Final[str] = "L2Toolbox"
    VERSION: Final[str] = "0.1.0"

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate the constants to ensure they meet constraints."""
        if not self.APP_NAME:
            raise ValueError("APP_NAME must not be empty")
        if not self.VERSION:
            raise ValueError("VERSION must not be empty")

# Singleton instance for easy access
app = AppConstants()
