"""
Capture Studio
===============

Collects labeled hand-gesture image samples from a live camera feed,
asks a remote service to train classifiers on them, and runs those
classifiers live.

Modules:
    - capture: Camera frame acquisition and JPEG snapshots
    - detection: MediaPipe hand landmarks, ordered result stream, gate/overlay
    - recording: Recording session, capture scheduler, upload queue
    - backend: REST client for the training/inference service
    - data: Label catalogue
    - core: Shared types, errors, event bus
    - utils: Configuration, logging, operator notices
    - app: Studio controller and operator console
"""

__version__ = "1.0.0"
