"""Typed data models shared by the store, the flow controller and the routes."""
