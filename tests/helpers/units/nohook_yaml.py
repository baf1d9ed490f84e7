"""Unit without a validator() factory."""

NAME = "nohook"
