#!/usr/bin/env python3
"""
Gatedrop Backend - Main application entry point
"""
import os

from gatedrop import create_app
from gatedrop.extensions import socketio

app = create_app()

if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    debug = app.config.get('DEBUG', False)

    socketio.run(
        app,
        host='0.0.0.0',
        port=port,
        debug=debug,
    )
