"""Shared configuration, logging and graph model for the block flow compiler."""
