"""
Body Type Assessment Server
===========================

A Flask-based server that classifies body type from a photo and generates a
personalized fitness and nutrition plan with Gemini.

Modules:
    - questionnaire: Fitness questionnaire steps and state machine
    - analyzers: Body type classification
    - services: Personalized plan generation
    - pipeline: Assessment orchestration and sessions
    - api: Flask API routes and endpoints
    - utils: Image intake helpers
"""

__version__ = "1.0.0"
__author__ = "Body Type Assessment Team"
