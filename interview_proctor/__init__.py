"""Interview Proctor - webcam-based integrity monitoring for interviews"""

__version__ = "1.0.0"
