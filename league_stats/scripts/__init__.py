# Scripts Package
