"""Utility helpers shared by the yaml_workbook modules."""
