# Services Package
