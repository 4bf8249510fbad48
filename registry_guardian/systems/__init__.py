"""
Registry Guardian — Systems

  validation     progressive schema enforcement per collection
  authorization  role hierarchy and write gates
  consistency    scheduled audits of stored data
  scoring        launch readiness and ongoing performance
"""
