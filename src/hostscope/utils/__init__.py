"""Console, configuration, logging and platform helpers"""
