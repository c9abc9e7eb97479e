"""
EchoLearn modules
=================

Modules:
    - capture: webcam frame acquisition
    - recognition: MediaPipe gesture classifier adapter
    - control: hold-confirmation debouncer and event dispatcher
    - classroom: live-class responder, voices, speech, transcript
    - quiz: quiz turn engine and question store
    - visualization: status overlay
    - utils: configuration and logging
"""
