from flask import current_app


def components() -> dict:
    return current_app.extensions["comichub_components"]


def config():
    return current_app.config["COMICHUB_CONFIG"]
