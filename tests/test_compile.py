def test_compile():
    # If any optional dependencies are declared in base modules, will raise ImportError
    import qiblacompass.coordinates
    import qiblacompass.errors
    import qiblacompass.geodesy
    import qiblacompass.heading
    import qiblacompass.location
    import qiblacompass.reconciler
    import qiblacompass.session
