"""ReportQL - declarative report configurations compiled to safe, parameterized SQL."""
