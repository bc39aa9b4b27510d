"""Authentication, role permissions and tenant scope resolution."""
