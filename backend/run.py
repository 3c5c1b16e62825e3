from wortex import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server so session snapshots can be pushed over websockets
    socketio.run(app, debug=True)
