# baoleme/models/message.py
from datetime import datetime

from . import db


class Message(db.Model):
    __tablename__ = "message"

    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(db.Integer, nullable=False)
    sender_role = db.Column(db.String(16), nullable=False)
    receiver_id = db.Column(db.Integer, nullable=False)
    receiver_role = db.Column(db.String(16), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
