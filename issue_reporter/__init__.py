"""Issue Reporter.

A five-step issue reporting wizard and the FastAPI service it submits to:
- Step-by-step validation shared by the wizard and the API
- Photo, video, audio and document attachments
- Pluggable in-memory or SQLAlchemy-backed store
- Simulated ticket creation and Slack notifications
"""
